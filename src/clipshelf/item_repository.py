#!/usr/bin/env python3
"""Clipboard item repository.

This module provides ItemRepository, the only component that reads and
writes item documents. It owns the ordering rules:
- new items float to the top of the unpinned partition
- pinning moves an item to the top of the pinned partition
- unpinning moves an item to the bottom of the unpinned partition
- reordering rewrites contiguous order keys 0..n-1

Each mutation reads the document it changes and passes it as the previous
version to upsert(), so a write racing another writer fails instead of
silently overwriting it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Sequence

from clipshelf.codec import DecodeError, decode, encode_image
from clipshelf.document_store import Document, DocumentStore
from clipshelf.item_metadata import ClipboardMetadata, summarize_documents
from clipshelf.items import (
    ClipboardItem,
    HydratedImage,
    ImageItem,
    ItemType,
    ListedItem,
    MalformedDocumentError,
    TextItem,
    from_document,
    now_ms,
    to_document,
)
from clipshelf.ordering import (
    Orderable,
    insertion_order,
    normalize_timestamp,
    pinned_order,
    sort_items,
    unpinned_order,
)

logger = logging.getLogger(__name__)


class ItemNotFoundError(LookupError):
    """
    Exception raised when a mutation targets an id that is not stored.

    Only update_text() raises it; delete and pin treat a missing id as a
    no-op.
    """

    def __init__(self, item_id: str):
        super().__init__(f"Item with id {item_id} not found")
        self.item_id = item_id


def _new_id() -> str:
    return str(uuid.uuid4())


def hydrate(item: ClipboardItem) -> ListedItem:
    """Attach decoded bytes to an image item; text items pass through.

    A payload that fails to decode leaves the image unhydrated instead of
    failing the caller.
    """
    if not isinstance(item, ImageItem):
        return item
    try:
        payload = decode(item.encoded_payload, item.mime_type)
    except DecodeError as e:
        logger.warning("Image %s could not be decoded, returning it unhydrated: %s", item.id, e)
        return HydratedImage(item=item, payload=None)
    return HydratedImage(item=item, payload=payload)


class ItemRepository:
    """CRUD and ordering operations over clipboard items.

    Args:
        store: Document store holding one document per item.
        clock: Returns the current time in epoch milliseconds.
        id_factory: Returns a new unique item id.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    async def _find_document(self, item_id: str) -> Document | None:
        docs = await self._store.find(lambda doc: doc.get("id") == item_id)
        return docs[0] if docs else None

    def _touch(self, doc: Document) -> int:
        """Return an updated_at strictly later than the one stored in doc."""
        return max(self._clock(), int(normalize_timestamp(doc.get("updated_at"))) + 1)

    async def _read_items(self) -> list[ClipboardItem]:
        docs = await self._store.find(sort="order")
        items: list[ClipboardItem] = []
        for doc in docs:
            try:
                items.append(from_document(doc))
            except MalformedDocumentError as e:
                logger.warning("Skipping malformed document: %s", e)
        return items

    async def list_all(self) -> list[ListedItem]:
        """Return every item in display order, with images hydrated."""
        items = await self._read_items()
        return [hydrate(item) for item in sort_items(items)]

    async def get(self, item_id: str) -> ListedItem | None:
        """Return one hydrated item, or None if the id is not stored."""
        doc = await self._find_document(item_id)
        if doc is None:
            return None
        try:
            return hydrate(from_document(doc))
        except MalformedDocumentError as e:
            logger.warning("Stored item %s is malformed: %s", item_id, e)
            return None

    async def add_text(self, content: str) -> TextItem | None:
        """
        Store a new text item at the top of the unpinned partition.

        Args:
            content: Text to store.

        Returns:
            The created item, or None when content is blank.
        """
        if not content or not content.strip():
            logger.debug("Ignoring blank text item")
            return None
        items = await self._read_items()
        now = self._clock()
        item = TextItem(
            id=self._id_factory(),
            content=content,
            created_at=now,
            updated_at=now,
            order=insertion_order(items),
        )
        await self._store.upsert(to_document(item))
        logger.debug("Added text item %s at order %s", item.id, item.order)
        return item

    async def add_image(self, payload: bytes, mime_type: str) -> HydratedImage:
        """
        Store a new image item at the top of the unpinned partition.

        The payload is transcoded to the canonical image type and encoded
        before anything is written.

        Args:
            payload: Raw image bytes.
            mime_type: Declared media type of payload.

        Returns:
            The created item with its canonical bytes attached.

        Raises:
            TranscodeError: If the image cannot be converted; nothing is stored.
        """
        canonical, encoded, stored_type = await encode_image(payload, mime_type)
        items = await self._read_items()
        now = self._clock()
        item = ImageItem(
            id=self._id_factory(),
            encoded_payload=encoded,
            mime_type=stored_type,
            created_at=now,
            updated_at=now,
            order=insertion_order(items),
        )
        await self._store.upsert(to_document(item))
        logger.debug("Added %s image item %s (%d bytes)", stored_type, item.id, len(canonical))
        return HydratedImage(item=item, payload=canonical)

    async def update_text(self, item_id: str, content: str) -> TextItem:
        """
        Replace the content of a text item.

        Order, pinned state and created_at are left untouched.

        Raises:
            ItemNotFoundError: If no text item has item_id.
        """
        doc = await self._find_document(item_id)
        if doc is None or doc.get("type") != ItemType.TEXT.value:
            raise ItemNotFoundError(item_id)
        updated = {**doc, "content": content, "updated_at": self._touch(doc)}
        await self._store.upsert(updated, previous=doc)
        return from_document(updated)

    async def set_pinned(self, item_id: str, pinned: bool) -> ClipboardItem | None:
        """
        Pin or unpin an item, moving it to the edge of its new partition.

        Returns:
            The updated item, or None if item_id is not stored.
        """
        doc = await self._find_document(item_id)
        if doc is None:
            logger.debug("Pin target %s not found, ignoring", item_id)
            return None
        items: Sequence[Orderable] = await self._read_items()
        if pinned:
            order = pinned_order(items)
        else:
            order = unpinned_order(items, item_id)
        updated = {**doc, "pinned": pinned, "order": order, "updated_at": self._touch(doc)}
        await self._store.upsert(updated, previous=doc)
        return from_document(updated)

    async def delete(self, item_id: str) -> bool:
        """Remove an item. Returns False if it was already gone."""
        doc = await self._find_document(item_id)
        if doc is None:
            return False
        await self._store.remove(item_id)
        return True

    async def reorder(self, items: Sequence[Any]) -> int:
        """
        Persist a new canonical sequence.

        Each item found in the store gets the order key of its position in
        items; ids not in the store are skipped.

        Args:
            items: Items (or anything with an ``id``) in their new order.

        Returns:
            Number of documents rewritten.
        """
        docs = await self._store.find()
        by_id = {doc["id"]: doc for doc in docs if doc.get("id")}
        updated: list[Document] = []
        bases: list[Document] = []
        for position, item in enumerate(items):
            base = by_id.get(item.id)
            if base is None:
                logger.debug("Reorder skipping unknown item %s", item.id)
                continue
            updated.append({**base, "order": position, "updated_at": self._touch(base)})
            bases.append(base)
        if updated:
            await self._store.upsert(updated, previous=bases)
        return len(updated)

    async def clear_all(self) -> int:
        """Remove every item. Returns the number removed."""
        docs = await self._store.find()
        ids = [doc["id"] for doc in docs if doc.get("id")]
        if ids:
            await self._store.remove(ids)
        return len(ids)

    async def metadata(self) -> ClipboardMetadata:
        """Aggregate counts and sizes without decoding images."""
        return summarize_documents(await self._store.find())

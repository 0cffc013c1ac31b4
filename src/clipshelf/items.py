#!/usr/bin/env python3
"""Clipboard item model.

Items are a tagged variant over ``ItemType``: ``TextItem`` carries a string,
``ImageItem`` carries an encoded payload plus its MIME type. Both are frozen
and map one-to-one onto persisted documents.

Decoded image bytes never live on ``ImageItem``. They are attached at read
time through the ``HydratedImage`` wrapper, which has no document form, so
runtime-only data cannot be written back to the store.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from clipshelf.ordering import normalize_order, normalize_timestamp


class ItemType(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class MalformedDocumentError(ValueError):
    """
    Exception raised when a stored document cannot be read as an item.

    Raised for documents without an id or with an unknown type.
    """

    pass


def now_ms() -> int:
    """Return the current Unix time in integer milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TextItem:
    """A text clipboard entry."""

    type: ClassVar[ItemType] = ItemType.TEXT

    id: str
    content: str
    created_at: int
    updated_at: int
    order: float = 0
    pinned: bool = False


@dataclass(frozen=True)
class ImageItem:
    """An image clipboard entry in its persisted, encoded form."""

    type: ClassVar[ItemType] = ItemType.IMAGE

    id: str
    encoded_payload: str
    mime_type: str
    created_at: int
    updated_at: int
    order: float = 0
    pinned: bool = False


ClipboardItem = Union[TextItem, ImageItem]


@dataclass(frozen=True)
class HydratedImage:
    """Runtime view of an image item with its decoded payload attached.

    Attributes:
        item: The persisted image item.
        payload: Decoded image bytes, or None when decoding failed.
    """

    type: ClassVar[ItemType] = ItemType.IMAGE

    item: ImageItem
    payload: bytes | None = None

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def mime_type(self) -> str:
        return self.item.mime_type

    @property
    def created_at(self) -> int:
        return self.item.created_at

    @property
    def updated_at(self) -> int:
        return self.item.updated_at

    @property
    def order(self) -> float:
        return self.item.order

    @property
    def pinned(self) -> bool:
        return self.item.pinned

    @property
    def hydrated(self) -> bool:
        return self.payload is not None


# What list_all hands out: text items as-is, images wrapped.
ListedItem = Union[TextItem, HydratedImage]


def to_document(item: ClipboardItem) -> dict[str, Any]:
    """Convert an item to its persisted document form.

    A non-finite order is stored as None so the document stays valid JSON.

    Args:
        item: Text or image item. HydratedImage is rejected.

    Returns:
        A plain dict suitable for DocumentStore.upsert.
    """
    if isinstance(item, HydratedImage):
        raise TypeError("HydratedImage is runtime-only; persist item.item instead")
    doc: dict[str, Any] = {
        "id": item.id,
        "type": item.type.value,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "order": item.order if math.isfinite(item.order) else None,
        "pinned": item.pinned,
    }
    if isinstance(item, TextItem):
        doc["content"] = item.content
    else:
        doc["encoded_payload"] = item.encoded_payload
        doc["mime_type"] = item.mime_type
    return doc


def from_document(doc: Mapping[str, Any]) -> ClipboardItem:
    """Build an item from a stored document.

    Missing or non-numeric order reads as +inf, missing timestamps as 0.

    Raises:
        MalformedDocumentError: If the id is missing or the type is unknown.
    """
    item_id = doc.get("id")
    if not item_id:
        raise MalformedDocumentError(f"Document has no id: {dict(doc)!r}")
    try:
        item_type = ItemType(doc.get("type"))
    except ValueError as e:
        raise MalformedDocumentError(
            f"Document {item_id} has unknown type {doc.get('type')!r}"
        ) from e

    common = {
        "id": str(item_id),
        "created_at": int(normalize_timestamp(doc.get("created_at"))),
        "updated_at": int(normalize_timestamp(doc.get("updated_at"))),
        "order": normalize_order(doc.get("order")),
        "pinned": doc.get("pinned") is True,
    }
    if item_type is ItemType.TEXT:
        return TextItem(content=str(doc.get("content") or ""), **common)
    return ImageItem(
        encoded_payload=str(doc.get("encoded_payload") or ""),
        mime_type=str(doc.get("mime_type") or ""),
        **common,
    )

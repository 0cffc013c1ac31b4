#!/usr/bin/env python3
"""In-memory clipboard list consumed by a presentation layer.

The view-model holds the displayed sequence and a selection cursor. It is
only changed through operations that run inside the SyncCoordinator:
mutate through the repository, re-read the full list, then reconcile.
Nothing is applied before the store confirms it, so a failed mutation
leaves the list as it was.

Reconciliation compares (id, type, updated_at, order, pinned) tuples and
keeps the current list objects when nothing material changed, so a
presentation layer keyed on identity does not re-render needlessly.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from clipshelf.item_repository import ItemRepository
from clipshelf.items import HydratedImage, ListedItem, TextItem
from clipshelf.sync_coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_SELECTION: int = -1


def snapshot_key(items: Sequence[Any]) -> list[tuple]:
    """Return the cheap equality key of a displayed sequence."""
    return [
        (item.id, item.type, item.updated_at, item.order, item.pinned)
        for item in items
    ]


class ListViewModel:
    """Displayed clipboard list plus selection cursor.

    Args:
        repository: Item repository to read and mutate through.
        coordinator: Gate serializing every store-touching operation.
        auto_select: Default for selecting newly added items; pass False on
            touch-primary devices.
    """

    def __init__(
        self,
        repository: ItemRepository,
        coordinator: SyncCoordinator,
        auto_select: bool = True,
    ):
        self.repository = repository
        self.coordinator = coordinator
        self.auto_select = auto_select
        self.items: list[ListedItem] = []
        self.selected_index: int = NO_SELECTION
        self.is_loading: bool = False

    # ---- reconciliation ----

    def reconcile(self, fresh: list[ListedItem]) -> bool:
        """Replace items with fresh only if they differ materially."""
        if snapshot_key(fresh) == snapshot_key(self.items):
            return False
        self.items = fresh
        if self.selected_index >= len(self.items):
            self.selected_index = len(self.items) - 1
        return True

    async def _refresh(self) -> None:
        self.reconcile(await self.repository.list_all())

    async def _run(self, operation: Callable[[], Awaitable[T]]) -> T | None:
        return await self.coordinator.with_exclusive_access(operation)

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return NO_SELECTION

    # ---- loading ----

    async def load_items(self, silent: bool = False) -> bool:
        """
        Re-read the repository and reconcile.

        Args:
            silent: Background refresh; leaves is_loading untouched.

        Returns:
            False if the refresh was dropped because a sync is in flight.
        """

        async def load() -> bool:
            if not silent:
                self.is_loading = True
            try:
                await self._refresh()
            finally:
                if not silent:
                    self.is_loading = False
            return True

        ran = await self.coordinator.with_exclusive_access(load, show_indicator=False)
        return bool(ran)

    # ---- mutations ----

    async def add_text(self, content: str, auto_select: bool | None = None) -> TextItem | None:
        """Add a text item; blank input and dropped calls return None."""
        content = content.strip()
        if not content:
            return None

        async def add() -> TextItem | None:
            item = await self.repository.add_text(content)
            await self._refresh()
            return item

        item = await self._run(add)
        if item is not None:
            self._select_added(item.id, auto_select)
        return item

    async def add_image(
        self, payload: bytes, mime_type: str, auto_select: bool | None = None
    ) -> HydratedImage | None:
        """Add an image item; returns None if the call was dropped."""

        async def add() -> HydratedImage:
            item = await self.repository.add_image(payload, mime_type)
            await self._refresh()
            return item

        item = await self._run(add)
        if item is not None:
            self._select_added(item.id, auto_select)
        return item

    def _select_added(self, item_id: str, auto_select: bool | None) -> None:
        if auto_select is None:
            auto_select = self.auto_select
        if auto_select:
            index = self._index_of(item_id)
            if index != NO_SELECTION:
                self.selected_index = index

    async def update_text(self, item_id: str, content: str) -> TextItem | None:
        """Replace a text item's content. ItemNotFoundError propagates."""

        async def update() -> TextItem:
            item = await self.repository.update_text(item_id, content)
            await self._refresh()
            return item

        return await self._run(update)

    async def set_pinned(self, item_id: str, pinned: bool) -> bool:
        """Pin or unpin an item. Returns False if the call was dropped."""

        async def pin() -> bool:
            await self.repository.set_pinned(item_id, pinned)
            await self._refresh()
            return True

        return bool(await self._run(pin))

    async def delete_item(self, item_id: str) -> bool:
        """Delete an item and clamp the cursor to the new last index."""

        async def delete() -> bool:
            await self.repository.delete(item_id)
            await self._refresh()
            return True

        # reconcile() does the clamping
        return bool(await self._run(delete))

    async def reorder_items(self, new_items: Sequence[ListedItem]) -> bool:
        """Persist a new order for the given items, then reconcile."""

        async def reorder() -> bool:
            await self.repository.reorder(new_items)
            await self._refresh()
            return True

        return bool(await self._run(reorder))

    async def clear_all(self) -> int | None:
        """Remove every item. Returns the count removed, None if dropped."""

        async def clear() -> int:
            count = await self.repository.clear_all()
            await self._refresh()
            return count

        count = await self._run(clear)
        if count is not None:
            self.selected_index = NO_SELECTION
        return count

    # ---- selection ----

    def select_next(self) -> None:
        if not self.items:
            return
        if self.selected_index == NO_SELECTION:
            self.selected_index = 0
        elif self.selected_index < len(self.items) - 1:
            self.selected_index += 1

    def select_previous(self) -> None:
        if not self.items:
            return
        if self.selected_index == NO_SELECTION:
            self.selected_index = 0
        elif self.selected_index > 0:
            self.selected_index -= 1

    def select_index(self, index: int) -> None:
        if 0 <= index < len(self.items):
            self.selected_index = index

    def clear_selection(self) -> None:
        self.selected_index = NO_SELECTION

    @property
    def selected_item(self) -> ListedItem | None:
        if 0 <= self.selected_index < len(self.items):
            return self.items[self.selected_index]
        return None

#!/usr/bin/env python3
"""Application context.

AppContext groups everything one running instance shares: the stores, the
repositories, the sync coordinator and the list view-model. It is built
explicitly and handed to consumers, so tests can hold several independent
instances side by side.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from clipshelf.constants import (
    ITEMS_COLLECTION,
    MIN_SYNC_INDICATOR_SECONDS,
    SETTINGS_COLLECTION,
)
from clipshelf.document_store import (
    DocumentStore,
    MemoryDocumentStore,
    SqliteDocumentStore,
)
from clipshelf.item_repository import ItemRepository
from clipshelf.items import now_ms
from clipshelf.settings import SettingsRepository
from clipshelf.sync_coordinator import SyncCoordinator
from clipshelf.view_model import ListViewModel


@dataclass
class AppContext:
    """State shared by every consumer of one clipboard history.

    Attributes:
        item_store: Document store for clipboard items.
        settings_store: Document store for the settings record.
        repository: Item repository over item_store.
        settings: Settings repository over settings_store.
        coordinator: Gate serializing repository operations.
        view_model: Displayed list and selection.
    """

    item_store: DocumentStore
    settings_store: DocumentStore
    repository: ItemRepository
    settings: SettingsRepository
    coordinator: SyncCoordinator
    view_model: ListViewModel

    @classmethod
    def build(
        cls,
        item_store: DocumentStore,
        settings_store: DocumentStore,
        min_dwell: float = MIN_SYNC_INDICATOR_SECONDS,
        auto_select: bool = True,
        clock: Callable[[], int] = now_ms,
        on_indicator_change: Callable[[bool], None] | None = None,
    ) -> "AppContext":
        """Wire a context around the given stores.

        on_indicator_change receives True when the syncing indicator should
        appear and False once it has been up for at least min_dwell.
        """
        repository = ItemRepository(item_store, clock=clock)
        coordinator = SyncCoordinator(min_dwell=min_dwell, on_indicator_change=on_indicator_change)
        return cls(
            item_store=item_store,
            settings_store=settings_store,
            repository=repository,
            settings=SettingsRepository(settings_store),
            coordinator=coordinator,
            view_model=ListViewModel(repository, coordinator, auto_select=auto_select),
        )

    @classmethod
    def in_memory(cls, **kwargs) -> "AppContext":
        """Build a context with fresh in-memory stores."""
        return cls.build(MemoryDocumentStore(), MemoryDocumentStore(), **kwargs)

    @classmethod
    def open(cls, db_path: Path, **kwargs) -> "AppContext":
        """Build a context persisting to the SQLite file at db_path."""
        return cls.build(
            SqliteDocumentStore(db_path, ITEMS_COLLECTION),
            SqliteDocumentStore(db_path, SETTINGS_COLLECTION),
            **kwargs,
        )

    def close(self) -> None:
        """Release timers held by the coordinator."""
        self.coordinator.close()

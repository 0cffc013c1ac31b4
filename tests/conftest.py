#!/usr/bin/env python3
"""Pytest fixtures for clipshelf tests.

Provides in-memory stores, a repository driven by a deterministic clock,
a sync coordinator without indicator dwell, and small image payloads.
"""

import io
from collections.abc import Generator

import pytest
from PIL import Image

from clipshelf.document_store import MemoryDocumentStore
from clipshelf.item_repository import ItemRepository
from clipshelf.sync_coordinator import SyncCoordinator
from clipshelf.view_model import ListViewModel


class TickingClock:
    """Clock returning strictly increasing epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


def make_image(fmt: str, size: tuple[int, int] = (2, 2)) -> bytes:
    """Encode a small solid image in the given Pillow format."""
    out = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def clock() -> TickingClock:
    """Create a fresh ticking clock."""
    return TickingClock()


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Create an empty in-memory item store."""
    return MemoryDocumentStore()


@pytest.fixture
def repository(store: MemoryDocumentStore, clock: TickingClock) -> ItemRepository:
    """Create a repository over the in-memory store."""
    return ItemRepository(store, clock=clock)


@pytest.fixture
def coordinator() -> Generator[SyncCoordinator, None, None]:
    """Create a coordinator whose indicator hides immediately."""
    coordinator = SyncCoordinator(min_dwell=0)
    yield coordinator
    coordinator.close()


@pytest.fixture
def view_model(repository: ItemRepository, coordinator: SyncCoordinator) -> ListViewModel:
    """Create a view-model with auto-select on."""
    return ListViewModel(repository, coordinator)


@pytest.fixture
def png_bytes() -> bytes:
    """Small PNG image."""
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Small JPEG image."""
    return make_image("JPEG")

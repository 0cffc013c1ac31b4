#!/usr/bin/env python3
"""Application settings storage.

Settings are a single document with a fixed id. Absent or malformed
fields fall back to defaults on load; saves merge over the current record
and always write the full record. The record is never deleted.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

from clipshelf.constants import SETTINGS_ID
from clipshelf.document_store import DocumentStore, StoreError

logger = logging.getLogger(__name__)


class CopyMode(str, Enum):
    SINGLE_TAP = "single-tap"
    DOUBLE_TAP = "double-tap"


@dataclass(frozen=True)
class AppSettings:
    """User preferences.

    Attributes:
        enable_pin: Whether the pin feature is offered.
        copy_mode: Gesture that copies an item back to the clipboard.
    """

    enable_pin: bool = True
    copy_mode: CopyMode = CopyMode.SINGLE_TAP

    def to_document(self) -> dict[str, Any]:
        doc = asdict(self)
        doc["copy_mode"] = self.copy_mode.value
        doc["id"] = SETTINGS_ID
        return doc


DEFAULT_SETTINGS = AppSettings()


def normalize_settings(data: Mapping[str, Any]) -> AppSettings:
    """Build settings from a possibly partial or malformed mapping."""
    enable_pin = data.get("enable_pin")
    if not isinstance(enable_pin, bool):
        enable_pin = DEFAULT_SETTINGS.enable_pin
    try:
        copy_mode = CopyMode(data.get("copy_mode"))
    except ValueError:
        copy_mode = DEFAULT_SETTINGS.copy_mode
    return AppSettings(enable_pin=enable_pin, copy_mode=copy_mode)


class SettingsRepository:
    """Load and save the singleton settings record."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def _find_record(self) -> dict[str, Any] | None:
        docs = await self._store.find(lambda doc: doc.get("id") == SETTINGS_ID)
        return docs[0] if docs else None

    async def load(self) -> AppSettings:
        """Return stored settings, or defaults when absent or unreadable."""
        try:
            record = await self._find_record()
        except StoreError as e:
            logger.warning("Failed to load settings, using defaults: %s", e)
            return DEFAULT_SETTINGS
        if record is None:
            return DEFAULT_SETTINGS
        return normalize_settings(record)

    async def save(self, **changes: Any) -> AppSettings:
        """
        Merge changes over the current settings and persist the full record.

        Args:
            **changes: Field values to replace, e.g. ``enable_pin=False``.

        Returns:
            The settings as persisted.

        Raises:
            StoreError: If the record cannot be written.
        """
        current = await self.load()
        merged_input = {**current.to_document(), **{
            key: value.value if isinstance(value, CopyMode) else value
            for key, value in changes.items()
        }}
        merged = normalize_settings(merged_input)
        try:
            base = await self._find_record()
            document = {**(base or {}), **merged.to_document()}
            await self._store.upsert(document, previous=base)
        except StoreError as e:
            logger.error("Failed to save settings: %s", e)
            raise
        return merged

#!/usr/bin/env python3
"""Aggregate statistics over stored clipboard documents."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from clipshelf.items import ItemType


@dataclass(frozen=True)
class ClipboardMetadata:
    """Summary of the item collection, computed on demand.

    Attributes:
        total: Number of documents.
        text_count: Number of text items.
        image_count: Number of image items.
        latest_created_at: Newest created_at, or None if there is none.
        latest_updated_at: Newest updated_at, or None if there is none.
        estimated_bytes: Sum of the compact JSON sizes of the documents.
    """

    total: int = 0
    text_count: int = 0
    image_count: int = 0
    latest_created_at: int | None = None
    latest_updated_at: int | None = None
    estimated_bytes: int = 0


def estimate_document_size(doc: Mapping[str, Any]) -> int:
    """Return the UTF-8 byte length of a document's compact JSON form."""
    serialized = json.dumps(dict(doc), separators=(",", ":"), ensure_ascii=False, default=str)
    return len(serialized.encode("utf-8"))


def _latest(values: Iterable[Any]) -> int | None:
    stamps = [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool) and v]
    return int(max(stamps)) if stamps else None


def summarize_documents(docs: Iterable[Mapping[str, Any]]) -> ClipboardMetadata:
    """
    Compute metadata from raw documents without decoding image payloads.

    Args:
        docs: Stored documents of the item collection.

    Returns:
        The aggregated ClipboardMetadata.
    """
    docs = list(docs)
    return ClipboardMetadata(
        total=len(docs),
        text_count=sum(1 for doc in docs if doc.get("type") == ItemType.TEXT.value),
        image_count=sum(1 for doc in docs if doc.get("type") == ItemType.IMAGE.value),
        latest_created_at=_latest(doc.get("created_at") for doc in docs),
        latest_updated_at=_latest(doc.get("updated_at") for doc in docs),
        estimated_bytes=sum(estimate_document_size(doc) for doc in docs),
    )

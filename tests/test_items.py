#!/usr/bin/env python3
"""Tests for item documents and the hydrated image wrapper."""
import math

import pytest

from clipshelf.items import (
    HydratedImage,
    ImageItem,
    ItemType,
    MalformedDocumentError,
    TextItem,
    from_document,
    to_document,
)


def _image() -> ImageItem:
    return ImageItem(
        id="img",
        encoded_payload="data:image/png;base64,AAEC",
        mime_type="image/png",
        created_at=1,
        updated_at=2,
        order=-1,
    )


def test_text_document_fields() -> None:
    """Test a text item maps to the documented persisted fields."""
    item = TextItem(id="t1", content="hi", created_at=5, updated_at=6, order=2, pinned=True)
    assert to_document(item) == {
        "id": "t1",
        "type": "text",
        "content": "hi",
        "created_at": 5,
        "updated_at": 6,
        "order": 2,
        "pinned": True,
    }


def test_image_document_has_no_decoded_payload() -> None:
    """Test image documents carry only the encoded form and mime type."""
    doc = to_document(_image())
    assert doc["encoded_payload"] == "data:image/png;base64,AAEC"
    assert doc["mime_type"] == "image/png"
    assert "payload" not in doc


def test_hydrated_image_cannot_be_persisted() -> None:
    """Test the runtime-only wrapper is refused by to_document."""
    with pytest.raises(TypeError):
        to_document(HydratedImage(item=_image(), payload=b"\x00\x01\x02"))


def test_hydrated_image_delegates_to_item() -> None:
    """Test HydratedImage exposes the wrapped item's ordering fields."""
    hydrated = HydratedImage(item=_image(), payload=None)
    assert hydrated.id == "img"
    assert hydrated.type is ItemType.IMAGE
    assert hydrated.order == -1
    assert hydrated.pinned is False
    assert hydrated.hydrated is False


def test_from_document_round_trips_text() -> None:
    """Test a stored text document reads back as an equal item."""
    item = TextItem(id="t1", content="hi", created_at=5, updated_at=6, order=2)
    assert from_document(to_document(item)) == item


def test_from_document_missing_order_is_infinite() -> None:
    """Test a document without an order key reads as sorting last."""
    item = from_document({"id": "x", "type": "text", "content": "a"})
    assert item.order == math.inf
    assert item.created_at == 0
    assert item.pinned is False


def test_infinite_order_is_stored_as_null() -> None:
    """Test a non-finite order key is not written as a float infinity."""
    item = TextItem(id="t", content="a", created_at=0, updated_at=0, order=math.inf)
    assert to_document(item)["order"] is None


@pytest.mark.parametrize(
    "doc",
    [{"type": "text"}, {"id": "x", "type": "video"}, {"id": "x"}],
)
def test_from_document_rejects_malformed(doc) -> None:
    """Test documents without an id or with an unknown type are rejected."""
    with pytest.raises(MalformedDocumentError):
        from_document(doc)


@pytest.mark.parametrize("stored", ["false", "true", 1, None])
def test_from_document_pinned_requires_boolean(stored) -> None:
    """Test only a real True marks a document as pinned."""
    item = from_document({"id": "x", "type": "text", "content": "a", "pinned": stored})
    assert item.pinned is False


def test_from_document_pinned_true() -> None:
    item = from_document({"id": "x", "type": "text", "content": "a", "pinned": True})
    assert item.pinned is True

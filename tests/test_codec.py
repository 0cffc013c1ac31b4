#!/usr/bin/env python3
"""
Tests for the binary payload codec.

Tests data URL encoding, decode failures, and transcoding to PNG.
"""
import base64
import io
import os

import pytest
from PIL import Image

from clipshelf.codec import (
    DecodeError,
    TranscodeError,
    decode,
    encode,
    encode_image,
    transcode_to_canonical,
)


def test_encode_produces_data_url() -> None:
    """Test encode emits a base64 data URL with the mime type."""
    assert encode(b"\x00\xffabc", "image/png") == "data:image/png;base64,AP9hYmM="


def test_encode_is_deterministic() -> None:
    """Test the same payload always encodes to the same text."""
    payload = os.urandom(64)
    assert encode(payload, "image/gif") == encode(payload, "image/gif")


@pytest.mark.parametrize("payload", [b"\x00", bytes(range(256)), os.urandom(1000)])
def test_decode_inverts_encode(payload: bytes) -> None:
    """Test decode(encode(payload)) returns the payload exactly."""
    assert decode(encode(payload, "image/png"), "image/png") == payload


def test_decode_accepts_bare_base64() -> None:
    """Test decode accepts base64 text without a data URL header."""
    assert decode(base64.b64encode(b"raw").decode(), "image/png") == b"raw"


@pytest.mark.parametrize(
    "text",
    ["data:image/png;base64,@@not base64@@", "data:image/png,plain", "abc"],
)
def test_decode_invalid_raises(text: str) -> None:
    """Test invalid encoded text raises DecodeError."""
    with pytest.raises(DecodeError):
        decode(text, "image/png")


@pytest.mark.parametrize("text", ["data:image/png;base64,", ""])
def test_decode_empty_body_raises(text: str) -> None:
    """Test an empty payload is reported as undecodable, not as zero bytes."""
    with pytest.raises(DecodeError, match="empty"):
        decode(text, "image/png")


def test_decode_non_text_raises() -> None:
    """Test a non-string stored payload raises DecodeError."""
    with pytest.raises(DecodeError):
        decode(None, "image/png")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_transcode_png_is_untouched(png_bytes: bytes) -> None:
    """Test canonical payloads pass through without re-encoding."""
    payload, mime = await transcode_to_canonical(png_bytes, "image/png")
    assert payload is png_bytes
    assert mime == "image/png"


@pytest.mark.asyncio
async def test_transcode_jpeg_to_png(jpeg_bytes: bytes) -> None:
    """Test a JPEG payload is converted to a PNG of the same size."""
    payload, mime = await transcode_to_canonical(jpeg_bytes, "image/jpeg")
    assert mime == "image/png"
    with Image.open(io.BytesIO(payload)) as image:
        assert image.format == "PNG"
        assert image.size == (2, 2)


@pytest.mark.asyncio
async def test_transcode_garbage_raises() -> None:
    """Test undecodable source images raise TranscodeError."""
    with pytest.raises(TranscodeError):
        await transcode_to_canonical(b"definitely not an image", "image/webp")


@pytest.mark.asyncio
async def test_encode_image_normalizes_then_encodes(jpeg_bytes: bytes) -> None:
    """Test encode_image stores a PNG data URL for a JPEG source."""
    canonical, encoded, mime = await encode_image(jpeg_bytes, "image/jpeg")
    assert mime == "image/png"
    assert encoded.startswith("data:image/png;base64,")
    assert canonical.startswith(b"\x89PNG")
    assert decode(encoded, mime) == canonical

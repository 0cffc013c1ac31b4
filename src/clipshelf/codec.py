#!/usr/bin/env python3
"""
Binary payload codec for image items.

The document store has no binary column, so image bytes are stored as
base64 data URLs of the form ``data:<mime>;base64,<payload>``. Encoding is
deterministic and round-trips exactly through decode().

Before encoding, images are transcoded to a single canonical type (PNG)
so that anything stored can later be written back to the platform
clipboard. Transcoding uses Pillow in a worker thread.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from clipshelf.constants import CANONICAL_MIME_TYPE

logger = logging.getLogger(__name__)

DATA_URL_PREFIX: str = "data:"
BASE64_MARKER: str = ";base64,"


class CodecError(Exception):
    """
    Exception raised when a binary payload cannot be converted.

    Base class for decode and transcode failures.
    """

    pass


class DecodeError(CodecError):
    """Raised when stored text is not a valid encoded payload."""

    pass


class TranscodeError(CodecError):
    """Raised when an image cannot be converted to the canonical type."""

    pass


def encode(payload: bytes, mime_type: str) -> str:
    """
    Encode a binary payload as a base64 data URL.

    Args:
        payload: Raw bytes to encode.
        mime_type: Media type recorded in the URL header.

    Returns:
        Text-safe encoded form of the payload.
    """
    body = base64.b64encode(payload).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime_type}{BASE64_MARKER}{body}"


def decode(text: str, mime_type: str) -> bytes:
    """
    Decode a data URL (or bare base64 text) back to bytes.

    The mime_type argument is the type stored alongside the payload; a
    differing data URL header is tolerated and logged, since the bytes are
    what matters.

    Args:
        text: Encoded form produced by encode().
        mime_type: Stored media type of the payload.

    Returns:
        The original payload bytes.

    Raises:
        DecodeError: If text is not validly encoded.
    """
    if not isinstance(text, str):
        raise DecodeError(f"Encoded payload must be text, got {type(text).__name__}")
    body = text
    if text.startswith(DATA_URL_PREFIX):
        header, sep, body = text.partition(BASE64_MARKER)
        if not sep:
            raise DecodeError("Data URL is not base64 encoded")
        url_type = header[len(DATA_URL_PREFIX):]
        if url_type and mime_type and url_type != mime_type:
            logger.debug("Data URL type %s differs from stored %s", url_type, mime_type)
    if not body:
        raise DecodeError("Encoded payload is empty")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e


def _transcode_to_png(payload: bytes) -> bytes:
    try:
        with Image.open(io.BytesIO(payload)) as image:
            image.load()
            if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                image = image.convert("RGBA")
            out = io.BytesIO()
            image.save(out, format="PNG")
            return out.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise TranscodeError(f"Cannot decode image for transcoding: {e}") from e


async def transcode_to_canonical(payload: bytes, mime_type: str) -> tuple[bytes, str]:
    """
    Convert an image payload to the canonical image type.

    Payloads already of the canonical type are returned untouched.

    Args:
        payload: Raw image bytes.
        mime_type: Declared media type of payload.

    Returns:
        Tuple of (canonical bytes, canonical mime type).

    Raises:
        TranscodeError: If the source image cannot be decoded.
    """
    if mime_type.lower() == CANONICAL_MIME_TYPE:
        return payload, CANONICAL_MIME_TYPE
    logger.debug("Transcoding %d bytes of %s to %s", len(payload), mime_type, CANONICAL_MIME_TYPE)
    converted = await asyncio.to_thread(_transcode_to_png, payload)
    return converted, CANONICAL_MIME_TYPE


async def encode_image(payload: bytes, mime_type: str) -> tuple[bytes, str, str]:
    """
    Normalize and encode an image payload for storage.

    Returns:
        Tuple of (canonical bytes, encoded text, stored mime type).

    Raises:
        TranscodeError: If normalization fails; nothing should be persisted.
    """
    canonical, canonical_type = await transcode_to_canonical(payload, mime_type)
    return canonical, encode(canonical, canonical_type), canonical_type

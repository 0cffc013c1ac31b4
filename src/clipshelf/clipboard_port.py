#!/usr/bin/env python3
"""Platform clipboard access.

ClipboardPort is the capability callers of the repository use to read
what the user copied and to place items back on the clipboard. Failures
are reported through return values and logged, never raised.

SystemClipboardPort reads images with Pillow's ImageGrab and text with
pyperclip, preferring an image when both are offered. Images are written
by piping PNG bytes to wl-copy (Wayland) or xclip (X11); on platforms
without either tool image writes report failure.
"""

from __future__ import annotations

import asyncio
import io
import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Protocol, Union

import pyperclip
from PIL import Image, ImageGrab

from clipshelf.constants import CANONICAL_MIME_TYPE, CLIPBOARD_COMMAND_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardText:
    value: str


@dataclass(frozen=True)
class ClipboardImage:
    payload: bytes
    mime_type: str


ClipboardContent = Union[ClipboardText, ClipboardImage]


class ClipboardPort(Protocol):
    async def read_clipboard(self) -> ClipboardContent | None: ...

    async def write_text(self, text: str) -> bool: ...

    async def write_image(self, payload: bytes) -> bool: ...


def grab_image() -> ClipboardImage | None:
    """Return the clipboard image as PNG, or None if there is none.

    ImageGrab returns a list of file names when files were copied; those
    are not images and are ignored.
    """
    try:
        grabbed = ImageGrab.grabclipboard()
    except (OSError, NotImplementedError) as e:
        logger.debug("Clipboard image not available: %s", e)
        return None
    if not isinstance(grabbed, Image.Image):
        return None
    out = io.BytesIO()
    grabbed.save(out, format="PNG")
    return ClipboardImage(out.getvalue(), CANONICAL_MIME_TYPE)


def image_copy_command() -> list[str] | None:
    """Return the command that takes a PNG on stdin, or None if none is installed."""
    if shutil.which("wl-copy"):
        return ["wl-copy", "--type", CANONICAL_MIME_TYPE]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard", "-t", CANONICAL_MIME_TYPE]
    return None


def put_image(payload: bytes) -> bool:
    """Place PNG bytes on the clipboard through wl-copy or xclip."""
    command = image_copy_command()
    if command is None:
        logger.error("Image copy needs wl-copy or xclip on the PATH")
        return False
    try:
        subprocess.run(
            command,
            input=payload,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            check=True,
            timeout=CLIPBOARD_COMMAND_TIMEOUT,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.error("Failed to copy image with %s: %s", command[0], e)
        return False
    return True


class SystemClipboardPort:
    """Clipboard of the running desktop session."""

    async def read_clipboard(self) -> ClipboardContent | None:
        image = await asyncio.to_thread(grab_image)
        if image is not None:
            return image
        try:
            text = await asyncio.to_thread(pyperclip.paste)
        except pyperclip.PyperclipException as e:
            logger.error("Failed to read clipboard: %s", e)
            return None
        if not text:
            return None
        return ClipboardText(text)

    async def write_text(self, text: str) -> bool:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as e:
            logger.error("Failed to copy text: %s", e)
            return False
        return True

    async def write_image(self, payload: bytes) -> bool:
        return await asyncio.to_thread(put_image, payload)

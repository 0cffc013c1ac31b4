#!/usr/bin/env python3
"""Moving items between the platform clipboard and the history list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipshelf.clipboard_port import ClipboardImage, ClipboardPort, ClipboardText
from clipshelf.codec import TranscodeError, transcode_to_canonical
from clipshelf.items import HydratedImage, ListedItem, TextItem

if TYPE_CHECKING:
    from clipshelf.view_model import ListViewModel

logger = logging.getLogger(__name__)


async def copy_item(port: ClipboardPort, item: ListedItem) -> bool:
    """Place an item back on the clipboard.

    Images go out as PNG, the only type platform clipboards reliably
    accept. An unhydrated image cannot be copied.

    Args:
        port: Clipboard capability to write through.
        item: Listed item to copy.

    Returns:
        True if the clipboard accepted the content.
    """
    if isinstance(item, TextItem):
        return await port.write_text(item.content)
    if isinstance(item, HydratedImage):
        if item.payload is None:
            logger.warning("Image %s has no decoded payload, cannot copy", item.id)
            return False
        try:
            png, _ = await transcode_to_canonical(item.payload, item.mime_type)
        except TranscodeError as e:
            logger.error("Failed to convert image %s for copying: %s", item.id, e)
            return False
        return await port.write_image(png)
    logger.warning("Unsupported item for copying: %r", item)
    return False


async def capture_clipboard(port: ClipboardPort, view_model: ListViewModel) -> ListedItem | None:
    """Read the clipboard and add its content to the history.

    Returns:
        The added item, or None when the clipboard was empty, the content
        was blank, or the add was dropped.
    """
    content = await port.read_clipboard()
    if isinstance(content, ClipboardText):
        return await view_model.add_text(content.value)
    if isinstance(content, ClipboardImage):
        return await view_model.add_image(content.payload, content.mime_type)
    logger.debug("Clipboard is empty, nothing captured")
    return None

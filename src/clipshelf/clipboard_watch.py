#!/usr/bin/env python3
"""Polling clipboard watcher.

Polls a ClipboardPort and records new text or images through the
view-model, while a silent background refresh keeps the list in step with
other writers. A capture dropped because a sync was in flight is retried
on the next poll.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from clipshelf.clipboard_port import ClipboardText
from clipshelf.constants import DEFAULT_REFRESH_INTERVAL
from clipshelf.refresh_loop import run_periodic_refresh

if TYPE_CHECKING:
    from clipshelf.clipboard_port import ClipboardContent, ClipboardPort
    from clipshelf.items import ListedItem
    from clipshelf.view_model import ListViewModel

logger = logging.getLogger(__name__)


async def _record(view_model: ListViewModel, content: ClipboardContent) -> ListedItem | None:
    if isinstance(content, ClipboardText):
        return await view_model.add_text(content.value)
    return await view_model.add_image(content.payload, content.mime_type)


async def watch_clipboard(
    port: ClipboardPort,
    view_model: ListViewModel,
    interval: float = DEFAULT_REFRESH_INTERVAL,
    stop_event: asyncio.Event | None = None,
    on_added: Callable[[ListedItem], None] | None = None,
) -> int:
    """Record clipboard changes until stop_event is set.

    The first content seen is taken as the baseline and is not recorded.

    Args:
        port: Clipboard to poll.
        view_model: List to add captured items to.
        interval: Seconds between polls; also the refresh interval.
        stop_event: Set to stop watching. Runs until cancelled when None.
        on_added: Called with each recorded item.

    Returns:
        Number of items recorded.
    """
    stop_event = stop_event or asyncio.Event()
    refresher = asyncio.create_task(run_periodic_refresh(view_model, stop_event, interval))
    last_seen = await port.read_clipboard()
    recorded = 0
    try:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            if stop_event.is_set():
                break
            content = await port.read_clipboard()
            if content is None or content == last_seen:
                continue
            if isinstance(content, ClipboardText) and not content.value.strip():
                last_seen = content
                continue
            item = await _record(view_model, content)
            if item is None:
                logger.debug("Capture dropped, will retry on next poll")
                continue
            last_seen = content
            recorded += 1
            if on_added is not None:
                on_added(item)
    finally:
        stop_event.set()
        await refresher
    return recorded

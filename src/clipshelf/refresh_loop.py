#!/usr/bin/env python3
"""Periodic background refresh of the clipboard list.

Keeps the view-model in step with writes made outside this process. Each
tick is a silent load; ticks that land while a sync is in flight are
dropped by the coordinator and simply retried on the next tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from clipshelf.constants import DEFAULT_REFRESH_INTERVAL

if TYPE_CHECKING:
    from clipshelf.view_model import ListViewModel

logger = logging.getLogger(__name__)


async def run_periodic_refresh(
    view_model: ListViewModel,
    stop_event: asyncio.Event,
    interval: float = DEFAULT_REFRESH_INTERVAL,
) -> int:
    """Refresh the view-model every interval seconds until stop_event is set.

    Args:
        view_model: The list to keep in sync with the store.
        stop_event: Set to end the loop; checked between ticks.
        interval: Seconds between refreshes.

    Returns:
        Number of refreshes that actually ran.
    """
    completed = 0
    while not stop_event.is_set():
        if await view_model.load_items(silent=True):
            completed += 1
        else:
            logger.debug("Background refresh skipped, sync in progress")
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
    logger.debug("Background refresh stopped after %d refreshes", completed)
    return completed

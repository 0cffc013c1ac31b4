#!/usr/bin/env python3
"""
Serialization of store-touching operations.

The coordinator is a two-state machine, IDLE and SYNCING, guarded by a
single transition: an operation may only start from IDLE. A call arriving
while SYNCING is dropped, not queued; the caller is expected to re-issue it
on the next user action or refresh tick.

Alongside the state, a user-facing "syncing" indicator is kept visible for
at least MIN_SYNC_INDICATOR_SECONDS so very fast operations do not flicker.
The hide is a timer that is cancelled whenever a new sync starts before it
fires. Silent operations (background refreshes) take the lock but leave the
indicator alone.

All of this runs on one event loop; the state check and transition happen
without an await in between, so no other task can slip in.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from clipshelf.constants import MIN_SYNC_INDICATOR_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncPhase(Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class SyncCoordinator:
    """Single-flight gate for repository operations.

    Args:
        min_dwell: Minimum seconds the syncing indicator stays visible.
        on_indicator_change: Called with the new indicator state whenever it
            flips.
    """

    def __init__(
        self,
        min_dwell: float = MIN_SYNC_INDICATOR_SECONDS,
        on_indicator_change: Callable[[bool], None] | None = None,
    ):
        self.min_dwell = min_dwell
        self.phase = SyncPhase.IDLE
        self.syncing = False
        self._on_indicator_change = on_indicator_change
        self._shown_at: float | None = None
        self._hide_handle: asyncio.TimerHandle | None = None

    @property
    def busy(self) -> bool:
        return self.phase is SyncPhase.SYNCING

    def _set_indicator(self, visible: bool) -> None:
        if self.syncing == visible:
            return
        self.syncing = visible
        if self._on_indicator_change is not None:
            self._on_indicator_change(visible)

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _show_indicator(self, loop: asyncio.AbstractEventLoop) -> None:
        self._cancel_hide()
        if not self.syncing:
            self._shown_at = loop.time()
        self._set_indicator(True)

    def _hide_indicator(self) -> None:
        self._hide_handle = None
        self._shown_at = None
        self._set_indicator(False)

    def _schedule_hide(self, loop: asyncio.AbstractEventLoop) -> None:
        self._cancel_hide()
        shown_at = self._shown_at if self._shown_at is not None else loop.time()
        remaining = max(0.0, self.min_dwell - (loop.time() - shown_at))
        self._hide_handle = loop.call_later(remaining, self._hide_indicator)

    async def with_exclusive_access(
        self,
        operation: Callable[[], Awaitable[T]],
        show_indicator: bool = True,
    ) -> T | None:
        """
        Run operation unless another one is already in flight.

        Args:
            operation: Zero-argument coroutine function to run.
            show_indicator: False for silent background work.

        Returns:
            The operation's result, or None if the call was dropped.

        Raises:
            Exception: Whatever operation raises, after the lock is released.
        """
        if self.busy:
            logger.debug("Sync in progress, dropping %s", getattr(operation, "__name__", operation))
            return None

        loop = asyncio.get_running_loop()
        self.phase = SyncPhase.SYNCING
        if show_indicator:
            self._show_indicator(loop)
        try:
            return await operation()
        finally:
            self.phase = SyncPhase.IDLE
            if show_indicator:
                self._schedule_hide(loop)

    def close(self) -> None:
        """Cancel a pending indicator hide and clear the indicator."""
        self._cancel_hide()
        self._shown_at = None
        self._set_indicator(False)

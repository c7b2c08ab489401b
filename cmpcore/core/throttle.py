"""
Coalescing scheduler combining throttle and debounce.

The first request of a burst fixes the burst start. Every request cancels
the pending timer and re-arms it to fire at ``start + timeout``, so a burst
runs the callback once, no later than ``timeout`` after it began. Changing
``timeout`` between requests turns the same primitive into a debounce
(short timeout after stop()) or a delayed retry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class CoalescingScheduler:
    """Run a callback at most once per burst of requests."""

    def __init__(
        self,
        callback: Callable[[], None],
        timeout: float,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.callback = callback
        self.timeout = timeout  # milliseconds
        self._loop = loop
        self._burst_started: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _now(self) -> float:
        return self.loop.time() * 1000

    def request(self, immediate: bool = False) -> None:
        """Schedule the callback, coalescing with any pending request."""
        now = self._now()
        if self._burst_started is None:
            self._burst_started = now

        if self._handle is not None:
            self._handle.cancel()

        if immediate:
            delay = 0.0
        else:
            delay = max(1.0, self.timeout - (now - self._burst_started))
        self._handle = self.loop.call_later(delay / 1000, self._fire)

    def stop(self) -> None:
        """Cancel the pending run and forget the current burst."""
        self._burst_started = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._burst_started = None
        self.callback()

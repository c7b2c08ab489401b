"""
Reentrancy guard.

While held, text-change events are bookkept but start no provider work.
Held during the autoindent pre-step and for the whole confirmation
transaction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum


class GuardState(Enum):
    IDLE = "idle"
    GUARDED = "guarded"


class ReentrancyGuard:
    """
    Suspend flag with release capabilities.

    Every acquire() hands back its own release function; releasing twice is
    a no-op, and the guard stays GUARDED until every holder released.
    """

    def __init__(self) -> None:
        self._holders = 0

    @property
    def state(self) -> GuardState:
        return GuardState.GUARDED if self._holders > 0 else GuardState.IDLE

    @property
    def held(self) -> bool:
        return self._holders > 0

    def acquire(self) -> Callable[[], None]:
        self._holders += 1
        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            self._holders -= 1

        return release

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the guard for a block, releasing on every exit path."""
        release = self.acquire()
        try:
            yield
        finally:
            release()

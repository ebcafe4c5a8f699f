"""One-shot timer scheduling on top of the asyncio event loop.

Every timer used by the kiosk goes through a :class:`Scheduler` so that the
callback always runs on the loop thread, which is also the thread that serves
HTTP handlers.  Tests substitute a manual clock with the same interface.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """A pending callback that can be cancelled synchronously."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Minimal scheduling interface used by the session timers."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def time(self) -> float: ...


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` after ``delay`` seconds on the loop thread."""
        return self._loop.call_later(delay, callback)

    def time(self) -> float:
        return self._loop.time()

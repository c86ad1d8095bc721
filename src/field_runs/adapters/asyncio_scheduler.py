"""Delayed actions on the asyncio event loop."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class AsyncioScheduler:
    """Schedules callbacks with ``loop.call_later``.

    Without an explicit loop the running loop of the caller is used, so
    calls must come from inside a coroutine or loop callback.
    """

    loop: asyncio.AbstractEventLoop | None = None

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        """Run ``callback`` once after ``delay_seconds``."""
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback)

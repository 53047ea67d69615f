"""
Asyncio Timer Adapter.

TimerPort backed by loop.call_later. The returned asyncio.TimerHandle is
the cancel handle.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class AsyncioTimer:
    """TimerPort on the running asyncio loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def arm(self, duration_seconds: float, on_fire: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, duration_seconds), on_fire)

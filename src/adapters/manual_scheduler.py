"""
Manual Scheduler Adapter.

Deterministic virtual time for tests and signal replays. Implements both
TimerPort (arm) and ClockPort (now).

Key behaviors:
- Time only moves on advance()
- Timers fire in due order, then arming order for equal due times
- The clock reads the timer's due time while its callback runs
- Cancelled timers never fire
"""

from __future__ import annotations

import heapq
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

DEFAULT_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


@dataclass(order=True)
class _Scheduled:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualTimerHandle:
    def __init__(self, entry: _Scheduled) -> None:
        self._entry = entry

    @property
    def cancelled(self) -> bool:
        return self._entry.cancelled

    def cancel(self) -> None:
        self._entry.cancelled = True


class ManualScheduler:
    """Virtual clock plus timer queue."""

    def __init__(self, epoch: datetime | None = None) -> None:
        self._epoch = epoch or DEFAULT_EPOCH
        self._elapsed = 0.0
        self._queue: list[_Scheduled] = []
        self._seq = 0

    @property
    def elapsed(self) -> float:
        """Seconds since the epoch."""
        return self._elapsed

    def now(self) -> datetime:
        return self._epoch + timedelta(seconds=self._elapsed)

    def arm(self, duration_seconds: float, on_fire: Callable[[], None]) -> ManualTimerHandle:
        self._seq += 1
        entry = _Scheduled(
            due=self._elapsed + max(0.0, duration_seconds),
            seq=self._seq,
            callback=on_fire,
        )
        heapq.heappush(self._queue, entry)
        return ManualTimerHandle(entry)

    def advance(self, seconds: float) -> int:
        """
        Move time forward, firing every timer that comes due.

        Returns:
            Number of timers fired
        """
        if seconds < 0:
            raise ValueError("Cannot move time backwards")
        target = self._elapsed + seconds
        fired = 0
        while self._queue and self._queue[0].due <= target:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._elapsed = entry.due
            fired += 1
            entry.callback()
        self._elapsed = target
        return fired

    def advance_ms(self, milliseconds: float) -> int:
        return self.advance(milliseconds / 1000.0)

    def pending(self) -> int:
        """Number of live (not cancelled, not fired) timers."""
        return sum(1 for e in self._queue if not e.cancelled)

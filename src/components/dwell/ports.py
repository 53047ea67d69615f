"""
Dwell component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Cancel the timer. Cancelling a fired or cancelled timer is a no-op."""
        ...


class TimerPort(Protocol):
    """Cancellable deferred callbacks on the host event loop."""

    def arm(self, duration_seconds: float, on_fire: Callable[[], None]) -> TimerHandle:
        """Schedule on_fire after duration_seconds."""
        ...

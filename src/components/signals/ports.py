"""
Signal source port definitions.

The element and the visibility observer are supplied by the host; the
engine never looks elements up on its own.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from .models import RawEvent, VisibilityEntry, VisibilityOptions

EventListener = Callable[[RawEvent], None]
VisibilityCallback = Callable[[VisibilityEntry], None]


class ElementHandle(Protocol):
    """A tracked content element owned by the caller."""

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        """Attach a listener for a raw event type."""
        ...

    def remove_event_listener(self, event_type: str, listener: EventListener) -> None:
        """Detach a previously attached listener."""
        ...


class VisibilityObserverPort(Protocol):
    """Intersection-style observer reporting visible ratios."""

    def observe(self, element: ElementHandle) -> None:
        """Start reporting visibility changes for the element."""
        ...

    def unobserve(self, element: ElementHandle) -> None:
        """Stop reporting for the element."""
        ...

    def disconnect(self) -> None:
        """Release the observer entirely."""
        ...


class VisibilityObserverFactory(Protocol):
    """Creates visibility observers bound to a callback."""

    def __call__(
        self,
        callback: VisibilityCallback,
        options: VisibilityOptions,
    ) -> VisibilityObserverPort:
        ...


class ClockPort(Protocol):
    def now(self) -> datetime:
        """Return current UTC time."""
        ...

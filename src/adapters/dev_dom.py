"""
Dev DOM Adapter.

In-process stand-ins for a browser element and an intersection observer.
Used by tests, the CLI simulator and local development.

Key behaviors:
- DevElement dispatches raw events to attached listeners in attach order
- DevViewport is a VisibilityObserverFactory; set_ratio() notifies every
  connected observer watching the element
- A newly observed element with a known ratio is reported immediately
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable

from src.components.signals import RawEvent, VisibilityEntry, VisibilityOptions


class DevElement:
    """Synthetic element handle."""

    def __init__(self, name: str = "element") -> None:
        self.name = name
        self._listeners: dict[str, list[Callable[[RawEvent], None]]] = defaultdict(list)

    def add_event_listener(self, event_type: str, listener: Callable[[RawEvent], None]) -> None:
        self._listeners[event_type].append(listener)

    def remove_event_listener(
        self, event_type: str, listener: Callable[[RawEvent], None]
    ) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch(self, event_type: str) -> None:
        for listener in list(self._listeners.get(event_type, ())):
            listener(RawEvent(type=event_type, target=self))

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(v) for v in self._listeners.values())

    def __repr__(self) -> str:
        return f"DevElement({self.name!r})"


class DevVisibilityObserver:
    """Observer created by DevViewport."""

    def __init__(
        self,
        viewport: DevViewport,
        callback: Callable[[VisibilityEntry], None],
        options: VisibilityOptions,
    ) -> None:
        self._viewport = viewport
        self._callback = callback
        self.options = options
        self.targets: list[object] = []
        self.connected = True

    def observe(self, element: object) -> None:
        if not self.connected:
            raise RuntimeError("Observer is disconnected")
        if element not in self.targets:
            self.targets.append(element)
            ratio = self._viewport.ratio_of(element)
            if ratio is not None:
                self._callback(VisibilityEntry(target=element, intersection_ratio=ratio))

    def unobserve(self, element: object) -> None:
        if element in self.targets:
            self.targets.remove(element)

    def disconnect(self) -> None:
        self.targets.clear()
        self.connected = False

    def notify(self, element: object, ratio: float) -> None:
        if self.connected and element in self.targets:
            self._callback(VisibilityEntry(target=element, intersection_ratio=ratio))


class DevViewport:
    """Synthetic viewport; also acts as the observer factory."""

    def __init__(self) -> None:
        self._ratios: dict[int, float] = {}
        self.observers: list[DevVisibilityObserver] = []

    def __call__(
        self,
        callback: Callable[[VisibilityEntry], None],
        options: VisibilityOptions,
    ) -> DevVisibilityObserver:
        observer = DevVisibilityObserver(self, callback, options)
        self.observers.append(observer)
        return observer

    def ratio_of(self, element: object) -> float | None:
        return self._ratios.get(id(element))

    def set_ratio(self, element: object, ratio: float) -> None:
        self._ratios[id(element)] = ratio
        for observer in list(self.observers):
            observer.notify(element, ratio)

    def active_observers(self) -> list[DevVisibilityObserver]:
        return [o for o in self.observers if o.connected and o.targets]

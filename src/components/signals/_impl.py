"""
Signal source backends.

Each backend attaches to one caller-owned element and feeds a SignalStream.
Every listener and observer attached is registered as a release on the
stream, so closing the stream detaches everything, including after a
partial attach failure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from functools import partial
from types import TracebackType
from uuid import UUID

from .component import (
    INTERACTION_EVENT_TYPES,
    MEDIA_EVENT_TYPES,
    POINTER_EVENT_TYPES,
    normalize_interaction_event,
    normalize_media_event,
    normalize_pointer_event,
    normalize_visibility,
    validate_visibility_options,
)
from .models import (
    EngagementSignal,
    RawEvent,
    SignalKind,
    SourceKind,
    VisibilityEntry,
    VisibilityOptions,
)
from .ports import ClockPort, ElementHandle, VisibilityObserverFactory

logger = logging.getLogger(__name__)

SignalHandler = Callable[[EngagementSignal], None]


class SignalStream:
    """
    Ordered stream of engagement signals for one content element.

    Signals emitted before a consumer is attached are buffered and flushed
    in order by listen(). After close() nothing is delivered.
    """

    def __init__(self, content_id: UUID, clock: ClockPort | None = None) -> None:
        self.content_id = content_id
        self._clock = clock
        self._handler: SignalHandler | None = None
        self._pending: deque[EngagementSignal] = deque()
        self._releases: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._clock.now()
        return datetime.now(UTC)

    def emit(self, kind: SignalKind) -> None:
        if self._closed:
            return
        signal = EngagementSignal(content_id=self.content_id, kind=kind, timestamp=self._now())
        if self._handler is None:
            self._pending.append(signal)
            return
        self._handler(signal)

    def listen(self, handler: SignalHandler) -> None:
        """Attach the single consumer and flush buffered signals."""
        if self._handler is not None:
            raise RuntimeError("SignalStream already has a consumer")
        self._handler = handler
        while self._pending and not self._closed:
            handler(self._pending.popleft())

    def add_release(self, release: Callable[[], None]) -> None:
        """Register a cleanup callback run by close()."""
        if self._closed:
            release()
            return
        self._releases.append(release)

    def close(self) -> None:
        """
        Detach every listener and observer.

        All releases run even if one raises; the first error is re-raised
        once everything has been attempted.
        """
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        self._handler = None
        releases, self._releases = self._releases, []

        errors: list[Exception] = []
        for release in reversed(releases):
            try:
                release()
            except Exception as e:
                logger.warning("Signal release failed for %s: %s", self.content_id, e)
                errors.append(e)
        if errors:
            raise errors[0]

    def __enter__(self) -> SignalStream:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


# --- Backends ---


class SignalSource(ABC):
    """Polymorphic engagement signal source."""

    kind: SourceKind

    def __init__(self, *, clock: ClockPort | None = None) -> None:
        self._clock = clock

    def subscribe(self, element: ElementHandle, content_id: UUID) -> SignalStream:
        """
        Begin observing an element.

        The caller owns the returned stream and must close it (directly or
        via a with block) on teardown.
        """
        stream = SignalStream(content_id, clock=self._clock)
        try:
            self.attach(element, stream)
        except Exception:
            stream.close()
            raise
        return stream

    @abstractmethod
    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        """Attach listeners to the element, registering their releases."""


def _attach_listeners(
    element: ElementHandle,
    stream: SignalStream,
    event_types: Iterable[str],
    normalize: Callable[[str], SignalKind | None],
) -> None:
    def listener(event: RawEvent) -> None:
        kind = normalize(event.type)
        if kind is not None:
            stream.emit(kind)

    for event_type in event_types:
        element.add_event_listener(event_type, listener)
        stream.add_release(partial(element.remove_event_listener, event_type, listener))


class VisibilitySignalSource(SignalSource):
    """START/STOP when the visible ratio crosses the threshold."""

    kind = SourceKind.VISIBILITY

    def __init__(
        self,
        observer_factory: VisibilityObserverFactory,
        options: VisibilityOptions | None = None,
        *,
        clock: ClockPort | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self._options = options or VisibilityOptions()
        errors = validate_visibility_options(self._options)
        if errors:
            raise ValueError("; ".join(errors))
        self._observer_factory = observer_factory

    @property
    def options(self) -> VisibilityOptions:
        return self._options

    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        threshold = self._options.threshold_ratio
        visible = False

        def on_entry(entry: VisibilityEntry) -> None:
            nonlocal visible
            kind, visible = normalize_visibility(entry.intersection_ratio, visible, threshold)
            if kind is not None:
                stream.emit(kind)

        observer = self._observer_factory(on_entry, self._options)
        stream.add_release(observer.disconnect)
        observer.observe(element)
        stream.add_release(partial(observer.unobserve, element))


class HoverSignalSource(SignalSource):
    """START on pointer enter, STOP on pointer leave."""

    kind = SourceKind.HOVER

    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        _attach_listeners(element, stream, POINTER_EVENT_TYPES, normalize_pointer_event)


class MediaSignalSource(SignalSource):
    """START on play, STOP on pause, IMMEDIATE_CONFIRM on ended."""

    kind = SourceKind.MEDIA

    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        _attach_listeners(element, stream, MEDIA_EVENT_TYPES, normalize_media_event)


class InteractionSignalSource(SignalSource):
    """IMMEDIATE_CONFIRM on a direct click."""

    kind = SourceKind.INTERACTION

    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        _attach_listeners(
            element, stream, INTERACTION_EVENT_TYPES, normalize_interaction_event
        )


class CompositeSignalSource(SignalSource):
    """Several backends feeding one stream for the same element."""

    def __init__(self, sources: Iterable[SignalSource], *, clock: ClockPort | None = None) -> None:
        super().__init__(clock=clock)
        self._sources = tuple(sources)
        if not self._sources:
            raise ValueError("CompositeSignalSource needs at least one source")

    @property
    def kinds(self) -> tuple[SourceKind, ...]:
        return tuple(s.kind for s in self._sources)

    def attach(self, element: ElementHandle, stream: SignalStream) -> None:
        for source in self._sources:
            source.attach(element, stream)


def build_signal_source(
    kinds: Iterable[SourceKind | str],
    *,
    observer_factory: VisibilityObserverFactory | None = None,
    visibility: VisibilityOptions | None = None,
    clock: ClockPort | None = None,
) -> SignalSource:
    """
    Build a signal source from backend selectors.

    A single selector yields that backend; several yield a composite.

    Raises:
        ValueError: No selectors, an unknown selector, or visibility
            requested without an observer factory.
    """
    selected: list[SourceKind] = []
    for kind in kinds:
        source_kind = SourceKind(kind)
        if source_kind not in selected:
            selected.append(source_kind)
    if not selected:
        raise ValueError("At least one signal source kind is required")

    sources: list[SignalSource] = []
    for source_kind in selected:
        if source_kind == SourceKind.VISIBILITY:
            if observer_factory is None:
                raise ValueError("Visibility tracking requires an observer factory")
            sources.append(VisibilitySignalSource(observer_factory, visibility, clock=clock))
        elif source_kind == SourceKind.HOVER:
            sources.append(HoverSignalSource(clock=clock))
        elif source_kind == SourceKind.MEDIA:
            sources.append(MediaSignalSource(clock=clock))
        else:
            sources.append(InteractionSignalSource(clock=clock))

    if len(sources) == 1:
        return sources[0]
    return CompositeSignalSource(sources, clock=clock)

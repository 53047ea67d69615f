"""
Signals component - Engagement signal normalization.
"""

from ._impl import (
    CompositeSignalSource,
    HoverSignalSource,
    InteractionSignalSource,
    MediaSignalSource,
    SignalSource,
    SignalStream,
    VisibilitySignalSource,
    build_signal_source,
)
from .component import (
    is_visible,
    normalize_interaction_event,
    normalize_media_event,
    normalize_pointer_event,
    normalize_visibility,
    validate_visibility_options,
)
from .models import (
    DEFAULT_ROOT_MARGIN,
    DEFAULT_THRESHOLD_RATIO,
    INTERACTION_CLICK,
    MEDIA_ENDED,
    MEDIA_PAUSE,
    MEDIA_PLAY,
    POINTER_ENTER,
    POINTER_LEAVE,
    EngagementSignal,
    RawEvent,
    SignalKind,
    SourceKind,
    VisibilityEntry,
    VisibilityOptions,
)
from .ports import (
    ClockPort,
    ElementHandle,
    VisibilityObserverFactory,
    VisibilityObserverPort,
)

__all__ = [
    # Sources
    "SignalSource",
    "SignalStream",
    "VisibilitySignalSource",
    "HoverSignalSource",
    "MediaSignalSource",
    "InteractionSignalSource",
    "CompositeSignalSource",
    "build_signal_source",
    # Pure functions
    "is_visible",
    "normalize_visibility",
    "normalize_pointer_event",
    "normalize_media_event",
    "normalize_interaction_event",
    "validate_visibility_options",
    # Models
    "EngagementSignal",
    "RawEvent",
    "SignalKind",
    "SourceKind",
    "VisibilityEntry",
    "VisibilityOptions",
    "POINTER_ENTER",
    "POINTER_LEAVE",
    "MEDIA_PLAY",
    "MEDIA_PAUSE",
    "MEDIA_ENDED",
    "INTERACTION_CLICK",
    "DEFAULT_ROOT_MARGIN",
    "DEFAULT_THRESHOLD_RATIO",
    # Ports
    "ClockPort",
    "ElementHandle",
    "VisibilityObserverFactory",
    "VisibilityObserverPort",
]

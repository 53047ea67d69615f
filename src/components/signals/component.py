"""
Signal source - Normalization of raw engagement events.

Functional core: maps source-specific raw events onto the START / STOP /
IMMEDIATE_CONFIRM vocabulary. The imperative backends live in _impl.

Key behaviors:
- Visibility crossing the threshold upward emits START, downward emits STOP
- Repeated observations on the same side of the threshold emit nothing
- Pointer enter/leave emit START/STOP
- Media play/pause emit START/STOP, ended emits IMMEDIATE_CONFIRM
- Click emits IMMEDIATE_CONFIRM
"""

from __future__ import annotations

from .models import (
    INTERACTION_CLICK,
    MEDIA_ENDED,
    MEDIA_PAUSE,
    MEDIA_PLAY,
    POINTER_ENTER,
    POINTER_LEAVE,
    SignalKind,
    VisibilityOptions,
)

_POINTER_EVENTS: dict[str, SignalKind] = {
    POINTER_ENTER: SignalKind.START,
    POINTER_LEAVE: SignalKind.STOP,
}

_MEDIA_EVENTS: dict[str, SignalKind] = {
    MEDIA_PLAY: SignalKind.START,
    MEDIA_PAUSE: SignalKind.STOP,
    MEDIA_ENDED: SignalKind.IMMEDIATE_CONFIRM,
}

_INTERACTION_EVENTS: dict[str, SignalKind] = {
    INTERACTION_CLICK: SignalKind.IMMEDIATE_CONFIRM,
}

POINTER_EVENT_TYPES: tuple[str, ...] = tuple(_POINTER_EVENTS)
MEDIA_EVENT_TYPES: tuple[str, ...] = tuple(_MEDIA_EVENTS)
INTERACTION_EVENT_TYPES: tuple[str, ...] = tuple(_INTERACTION_EVENTS)


def validate_visibility_options(options: VisibilityOptions) -> list[str]:
    """Return a list of problems with the options (empty if valid)."""
    errors: list[str] = []
    if not 0.0 <= options.threshold_ratio <= 1.0:
        errors.append("threshold_ratio must be between 0 and 1")
    if not options.root_margin.strip():
        errors.append("root_margin must not be empty")
    return errors


def is_visible(ratio: float, threshold: float) -> bool:
    """
    Whether an intersection ratio counts as visible.

    A zero threshold means "any pixel visible", so the ratio must be
    strictly positive in that case.
    """
    if threshold <= 0.0:
        return ratio > 0.0
    return ratio >= threshold


def normalize_visibility(
    ratio: float,
    was_visible: bool,
    threshold: float,
) -> tuple[SignalKind | None, bool]:
    """
    Normalize one visibility observation.

    Args:
        ratio: Observed intersection ratio (0.0 - 1.0)
        was_visible: Visibility state after the previous observation
        threshold: Threshold ratio

    Returns:
        Tuple of (signal or None, new visibility state)
    """
    now_visible = is_visible(ratio, threshold)
    if now_visible == was_visible:
        return None, was_visible
    return (SignalKind.START if now_visible else SignalKind.STOP), now_visible


def normalize_pointer_event(event_type: str) -> SignalKind | None:
    return _POINTER_EVENTS.get(event_type)


def normalize_media_event(event_type: str) -> SignalKind | None:
    return _MEDIA_EVENTS.get(event_type)


def normalize_interaction_event(event_type: str) -> SignalKind | None:
    return _INTERACTION_EVENTS.get(event_type)

"""
Signal source input/output models.

Raw, source-specific events are normalized into three engagement signals:
START, STOP and IMMEDIATE_CONFIRM.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

# --- Enums ---


class SignalKind(str, Enum):
    """Normalized engagement signal."""

    START = "start"
    STOP = "stop"
    IMMEDIATE_CONFIRM = "immediate_confirm"


class SourceKind(str, Enum):
    """Signal source backend selector."""

    VISIBILITY = "visibility"
    HOVER = "hover"
    MEDIA = "media"
    INTERACTION = "interaction"


# Raw event names understood by the backends
POINTER_ENTER = "mouseenter"
POINTER_LEAVE = "mouseleave"
MEDIA_PLAY = "play"
MEDIA_PAUSE = "pause"
MEDIA_ENDED = "ended"
INTERACTION_CLICK = "click"


# --- Options ---


DEFAULT_THRESHOLD_RATIO = 0.5
DEFAULT_ROOT_MARGIN = "0px"


@dataclass(frozen=True)
class VisibilityOptions:
    """Visibility observer options."""

    threshold_ratio: float = DEFAULT_THRESHOLD_RATIO
    root_margin: str = DEFAULT_ROOT_MARGIN


# --- Events ---


@dataclass(frozen=True)
class RawEvent:
    """A raw DOM-like event dispatched on an element."""

    type: str
    target: Any = None


@dataclass(frozen=True)
class VisibilityEntry:
    """One visibility observation for an element."""

    target: Any
    intersection_ratio: float


@dataclass(frozen=True)
class EngagementSignal:
    """
    Normalized engagement signal for one content element.

    Transient: produced by a signal source, consumed once by a dwell
    state machine.
    """

    content_id: UUID
    kind: SignalKind
    timestamp: datetime

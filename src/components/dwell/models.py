"""
Dwell component models.

Invariants:
- One DwellState per (viewer, content, element) instance
- CONFIRMED is terminal
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

# --- Enums ---


class DwellPhase(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    CONFIRMED = "confirmed"


class DwellTimer(str, Enum):
    """Timer input to the transition function."""

    FIRED = "timer_fired"


class DwellEffect(str, Enum):
    """Side effect requested by a transition."""

    NONE = "none"
    ARM = "arm"
    CANCEL = "cancel"
    CONFIRM = "confirm"


class ConfirmTrigger(str, Enum):
    DWELL = "dwell"
    INTERACTION = "interaction"


# --- Configuration ---

DEFAULT_IMAGE_DWELL_SECONDS = 3.0
DEFAULT_MEDIA_DWELL_SECONDS = 10.0


@dataclass(frozen=True)
class DwellConfig:
    """Dwell threshold for one tracked instance."""

    min_dwell_seconds: float = DEFAULT_IMAGE_DWELL_SECONDS


@dataclass(frozen=True)
class DwellValidationError:
    code: str
    message: str
    field_name: str | None = None


# --- State ---


@dataclass(frozen=True)
class DwellState:
    """
    Per-instance dwell state.

    armed_at is set only while WATCHING.
    """

    phase: DwellPhase = DwellPhase.IDLE
    armed_at: datetime | None = None


@dataclass(frozen=True)
class DwellTransition:
    state: DwellState
    effect: DwellEffect


@dataclass(frozen=True)
class DwellConfirmed:
    """Emitted exactly once when an instance reaches CONFIRMED."""

    content_id: UUID
    confirmed_at: datetime
    trigger: ConfirmTrigger
    dwell_seconds: float | None = None

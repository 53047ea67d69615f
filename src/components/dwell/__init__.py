"""
Dwell component - Confirmation state machine.
"""

from ._impl import DwellStateMachine
from .component import DwellInput, transition, validate_dwell_config
from .models import (
    DEFAULT_IMAGE_DWELL_SECONDS,
    DEFAULT_MEDIA_DWELL_SECONDS,
    ConfirmTrigger,
    DwellConfig,
    DwellConfirmed,
    DwellEffect,
    DwellPhase,
    DwellState,
    DwellTimer,
    DwellTransition,
    DwellValidationError,
)
from .ports import TimerHandle, TimerPort

__all__ = [
    "DwellStateMachine",
    # Pure functions
    "transition",
    "validate_dwell_config",
    "DwellInput",
    # Models
    "ConfirmTrigger",
    "DwellConfig",
    "DwellConfirmed",
    "DwellEffect",
    "DwellPhase",
    "DwellState",
    "DwellTimer",
    "DwellTransition",
    "DwellValidationError",
    "DEFAULT_IMAGE_DWELL_SECONDS",
    "DEFAULT_MEDIA_DWELL_SECONDS",
    # Ports
    "TimerHandle",
    "TimerPort",
]

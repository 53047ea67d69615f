"""
Dwell component - Confirmation state machine.

Functional core: the transition table. The DwellStateMachine in _impl owns
the state value and the timer and applies the requested effects.

Transitions:
- IDLE --START--> WATCHING (arm timer)
- WATCHING --STOP--> IDLE (cancel timer, elapsed dwell discarded)
- WATCHING --timer fired--> CONFIRMED
- IDLE|WATCHING --IMMEDIATE_CONFIRM--> CONFIRMED
- CONFIRMED absorbs everything

Dwell is not accumulated across interruptions: a STOP followed by a START
re-arms the full threshold.
"""

from __future__ import annotations

from datetime import datetime

from src.components.signals import SignalKind

from .models import (
    DwellConfig,
    DwellEffect,
    DwellPhase,
    DwellState,
    DwellTimer,
    DwellTransition,
    DwellValidationError,
)

DwellInput = SignalKind | DwellTimer


def validate_dwell_config(config: DwellConfig) -> list[DwellValidationError]:
    errors: list[DwellValidationError] = []
    if config.min_dwell_seconds < 0:
        errors.append(
            DwellValidationError(
                code="INVALID_DWELL",
                message="min_dwell_seconds cannot be negative",
                field_name="min_dwell_seconds",
            )
        )
    return errors


def transition(state: DwellState, event: DwellInput, now: datetime) -> DwellTransition:
    """
    Compute the next dwell state.

    Args:
        state: Current state
        event: Engagement signal or timer fire
        now: Time of the event

    Returns:
        DwellTransition with the new state and the effect to apply
    """
    if state.phase == DwellPhase.CONFIRMED:
        return DwellTransition(state=state, effect=DwellEffect.NONE)

    if event == SignalKind.IMMEDIATE_CONFIRM:
        return DwellTransition(
            state=DwellState(phase=DwellPhase.CONFIRMED),
            effect=DwellEffect.CONFIRM,
        )

    if state.phase == DwellPhase.IDLE:
        if event == SignalKind.START:
            return DwellTransition(
                state=DwellState(phase=DwellPhase.WATCHING, armed_at=now),
                effect=DwellEffect.ARM,
            )
        # STOP while idle, or a stale timer
        return DwellTransition(state=state, effect=DwellEffect.NONE)

    # WATCHING
    if event == SignalKind.STOP:
        return DwellTransition(state=DwellState(phase=DwellPhase.IDLE), effect=DwellEffect.CANCEL)
    if event == DwellTimer.FIRED:
        return DwellTransition(
            state=DwellState(phase=DwellPhase.CONFIRMED),
            effect=DwellEffect.CONFIRM,
        )
    return DwellTransition(state=state, effect=DwellEffect.NONE)

"""
DwellStateMachine - imperative shell around the transition table.

Owns exactly one DwellState and at most one live timer. Each arming gets a
fresh token; a fire carrying an old token is ignored, so a timer that
slipped past cancel() can never confirm.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from src.components.signals import ClockPort, EngagementSignal

from .component import DwellInput, transition, validate_dwell_config
from .models import (
    ConfirmTrigger,
    DwellConfig,
    DwellConfirmed,
    DwellEffect,
    DwellPhase,
    DwellState,
    DwellTimer,
)
from .ports import TimerHandle, TimerPort

logger = logging.getLogger(__name__)


class DwellStateMachine:
    """Dwell confirmation for one (viewer, content, element) instance."""

    def __init__(
        self,
        content_id: UUID,
        config: DwellConfig,
        timer: TimerPort,
        on_confirmed: Callable[[DwellConfirmed], None],
        *,
        clock: ClockPort | None = None,
    ) -> None:
        errors = validate_dwell_config(config)
        if errors:
            raise ValueError("; ".join(e.message for e in errors))
        self.content_id = content_id
        self._config = config
        self._timer = timer
        self._on_confirmed = on_confirmed
        self._clock = clock
        self._state = DwellState()
        self._handle: TimerHandle | None = None
        self._token = 0
        self._torn_down = False

    @property
    def state(self) -> DwellState:
        return self._state

    @property
    def config(self) -> DwellConfig:
        return self._config

    @property
    def is_confirmed(self) -> bool:
        return self._state.phase == DwellPhase.CONFIRMED

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def handle(self, signal: EngagementSignal) -> None:
        """Consume one engagement signal."""
        self._apply(signal.kind, signal.timestamp)

    def teardown(self) -> None:
        """Cancel any armed timer and make the instance inert."""
        self._cancel()
        self._torn_down = True

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._clock.now()
        return datetime.now(UTC)

    def _apply(self, event: DwellInput, now: datetime) -> None:
        if self._torn_down:
            return

        previous = self._state
        result = transition(previous, event, now)
        self._state = result.state

        if result.effect == DwellEffect.ARM:
            self._arm()
        elif result.effect == DwellEffect.CANCEL:
            self._cancel()
        elif result.effect == DwellEffect.CONFIRM:
            self._cancel()
            self._confirm(previous, event, now)

    def _arm(self) -> None:
        self._cancel()
        self._token += 1
        token = self._token
        self._handle = self._timer.arm(
            self._config.min_dwell_seconds, lambda: self._on_timer(token)
        )

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._token += 1

    def _on_timer(self, token: int) -> None:
        if token != self._token:
            return
        self._handle = None
        self._apply(DwellTimer.FIRED, self._now())

    def _confirm(self, previous: DwellState, event: DwellInput, now: datetime) -> None:
        if event == DwellTimer.FIRED:
            trigger = ConfirmTrigger.DWELL
            dwell_seconds = (
                (now - previous.armed_at).total_seconds() if previous.armed_at else None
            )
        else:
            trigger = ConfirmTrigger.INTERACTION
            dwell_seconds = None

        logger.debug("Dwell confirmed for %s via %s", self.content_id, trigger.value)
        self._on_confirmed(
            DwellConfirmed(
                content_id=self.content_id,
                confirmed_at=now,
                trigger=trigger,
                dwell_seconds=dwell_seconds,
            )
        )

"""
ViewTracker - Signal source, dwell machine and recorder for one mount.

One tracker per tracked content element. Runs on the host asyncio loop:
signals and timer fires are handled synchronously, recording runs as a
task so other trackers keep receiving signals meanwhile.

Key behaviors:
- Ineligible mounts attach nothing
- unmount() cancels the armed timer and detaches every listener; the
  mounted() context manager does so on every exit path
- At most one record task in flight
- A failed record leaves the tracker unrecorded and installs a fresh dwell
  instance so a later engagement can retry
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from src.components.dwell import DwellConfig, DwellConfirmed, DwellStateMachine, TimerPort
from src.components.signals import (
    ClockPort,
    ElementHandle,
    EngagementSignal,
    SignalSource,
    SignalStream,
    VisibilityObserverFactory,
    VisibilityOptions,
    build_signal_source,
)
from src.components.views import (
    IdentityPort,
    RecordReason,
    RecordViewOutput,
    ViewRecorder,
)

from .component import is_tracking_eligible, resolve_tracking_config
from .models import PRESETS, ContentKind, TrackingConfig

logger = logging.getLogger(__name__)


class ViewTracker:
    """Records a view of one content element once engagement is confirmed."""

    def __init__(
        self,
        *,
        content_id: UUID,
        creator_id: UUID | None,
        recorder: ViewRecorder,
        identity: IdentityPort,
        timer: TimerPort,
        kind: ContentKind = ContentKind.IMAGE,
        config: TrackingConfig | None = None,
        source: SignalSource | None = None,
        observer_factory: VisibilityObserverFactory | None = None,
        clock: ClockPort | None = None,
        is_entitled: bool = True,
    ) -> None:
        self.content_id = content_id
        self.creator_id = creator_id
        self.kind = ContentKind(kind)
        self._recorder = recorder
        self._identity = identity
        self._timer = timer
        self._clock = clock
        self._config = config or resolve_tracking_config(self.kind)
        self._source = source or build_signal_source(
            PRESETS[self.kind].source_kinds,
            observer_factory=observer_factory,
            visibility=VisibilityOptions(
                threshold_ratio=self._config.visibility_threshold_ratio,
                root_margin=self._config.root_margin,
            ),
            clock=clock,
        )
        self._is_entitled = is_entitled

        self._element: ElementHandle | None = None
        self._stream: SignalStream | None = None
        self._machine: DwellStateMachine | None = None
        self._inflight: asyncio.Task[RecordViewOutput] | None = None
        self._recorded = False
        self._last_result: RecordViewOutput | None = None

    # --- State ---

    @property
    def config(self) -> TrackingConfig:
        return self._config

    @property
    def has_recorded(self) -> bool:
        return self._recorded

    @property
    def is_mounted(self) -> bool:
        return self._stream is not None

    @property
    def machine(self) -> DwellStateMachine | None:
        return self._machine

    @property
    def last_result(self) -> RecordViewOutput | None:
        return self._last_result

    def is_eligible(self) -> bool:
        return is_tracking_eligible(
            self._config,
            self.kind,
            viewer_id=self._identity.current_viewer_id(),
            content_id=self.content_id,
            is_entitled=self._is_entitled,
            already_recorded=self._recorded,
        )

    # --- Lifecycle ---

    def mount(self, element: ElementHandle) -> bool:
        """
        Start tracking an element.

        Any previous mount is torn down first.

        Returns:
            True if observers were attached
        """
        self.unmount()
        self._element = element
        if not self.is_eligible():
            logger.debug("Tracking skipped for %s", self.content_id)
            return False

        self._machine = self._new_machine()
        try:
            self._stream = self._source.subscribe(element, self.content_id)
            self._stream.listen(self._on_signal)
        except Exception:
            self.unmount()
            raise
        logger.debug("Tracking %s (%s)", self.content_id, self.kind.value)
        return True

    def unmount(self) -> None:
        """Cancel the armed timer and detach all listeners."""
        machine, self._machine = self._machine, None
        stream, self._stream = self._stream, None
        try:
            if machine is not None:
                machine.teardown()
        finally:
            if stream is not None:
                stream.close()
                logger.debug("Stopped tracking %s", self.content_id)

    @contextmanager
    def mounted(self, element: ElementHandle) -> Iterator[bool]:
        active = self.mount(element)
        try:
            yield active
        finally:
            self.unmount()

    def set_entitled(self, is_entitled: bool) -> bool:
        """
        Update entitlement; remount the last element when it changes.

        Returns:
            Whether the tracker is mounted afterwards
        """
        if is_entitled == self._is_entitled:
            return self.is_mounted
        self._is_entitled = is_entitled
        if self._element is None:
            return False
        return self.mount(self._element)

    # --- Recording ---

    async def record_manually(self) -> RecordViewOutput:
        """Record now, bypassing dwell."""
        if self._recorded:
            return RecordViewOutput(reason=RecordReason.ALREADY_RECORDED)
        if self._inflight is not None and not self._inflight.done():
            return await self._inflight
        self._inflight = asyncio.get_running_loop().create_task(self._record())
        return await self._inflight

    async def drain(self) -> None:
        """Wait for the in-flight record task, if any."""
        while self._inflight is not None and not self._inflight.done():
            await self._inflight

    def _new_machine(self) -> DwellStateMachine:
        return DwellStateMachine(
            self.content_id,
            DwellConfig(min_dwell_seconds=self._config.min_dwell_seconds),
            self._timer,
            self._on_confirmed,
            clock=self._clock,
        )

    def _on_signal(self, signal: EngagementSignal) -> None:
        if self._machine is not None:
            self._machine.handle(signal)

    def _on_confirmed(self, event: DwellConfirmed) -> None:
        if self._recorded:
            return
        if self._inflight is not None and not self._inflight.done():
            return
        self._inflight = asyncio.get_running_loop().create_task(self._record())

    async def _record(self) -> RecordViewOutput:
        viewer_id = self._identity.current_viewer_id()
        result = await self._recorder.record(viewer_id, self.content_id, self.creator_id)
        self._last_result = result

        if result.success:
            self._recorded = True
            if self._machine is not None:
                self._machine.teardown()
        elif self._stream is not None and (self._machine is None or self._machine.is_confirmed):
            logger.debug("Record failed for %s (%s), re-arming", self.content_id, result.reason.value)
            self._machine = self._new_machine()
        return result

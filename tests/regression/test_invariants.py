"""
Regression tests for the view recording invariants.

Virtual time via ManualScheduler; every ledger call is observed through a
spy wrapped around the in-memory ledger.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest

from src.adapters.dev_dom import DevElement, DevViewport
from src.adapters.identity import StaticIdentity
from src.adapters.manual_scheduler import DEFAULT_EPOCH, ManualScheduler
from src.adapters.memory_ledger import InMemoryViewLedger
from src.components.dwell import DwellConfig, DwellConfirmed, DwellStateMachine
from src.components.signals import EngagementSignal, SignalKind, SourceKind, build_signal_source
from src.components.tracking import ViewTracker, resolve_tracking_config
from src.components.views import RecordReason, ViewAggregator, ViewRecord, ViewRecorder


class SpyLedger(InMemoryViewLedger):
    """In-memory ledger that logs calls; optionally holds exists() until N callers arrive."""

    def __init__(self, hold_exists_for: int = 0) -> None:
        super().__init__()
        self.calls: list[tuple[str, UUID, UUID]] = []
        self.inserted_at: list[datetime] = []
        self._hold_for = hold_exists_for
        self._arrived = 0
        self._all_arrived: asyncio.Event | None = None

    async def exists(self, viewer_id: UUID, content_id: UUID) -> bool:
        self.calls.append(("exists", viewer_id, content_id))
        if self._hold_for:
            if self._all_arrived is None:
                self._all_arrived = asyncio.Event()
            self._arrived += 1
            if self._arrived >= self._hold_for:
                self._all_arrived.set()
            await self._all_arrived.wait()
        return await super().exists(viewer_id, content_id)

    async def insert(self, viewer_id: UUID, content_id: UUID, viewed_at: datetime) -> ViewRecord:
        self.calls.append(("insert", viewer_id, content_id))
        self.inserted_at.append(viewed_at)
        return await super().insert(viewer_id, content_id, viewed_at)

    def count_calls(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class World:
    """One viewer, one content item, one element tracked by hover and click."""

    def __init__(self, *, viewer_id: UUID | None = None, creator_id: UUID | None = None) -> None:
        self.viewer_id = viewer_id or uuid4()
        self.creator_id = creator_id or uuid4()
        self.content_id = uuid4()
        self.scheduler = ManualScheduler()
        self.ledger = SpyLedger()
        self.element = DevElement("content")
        self.tracker = self.new_tracker()

    def new_tracker(self) -> ViewTracker:
        return ViewTracker(
            content_id=self.content_id,
            creator_id=self.creator_id,
            recorder=ViewRecorder(self.ledger, clock=self.scheduler),
            identity=StaticIdentity(self.viewer_id),
            timer=self.scheduler,
            config=resolve_tracking_config("image", min_dwell_seconds=3),
            source=build_signal_source(
                [SourceKind.HOVER, SourceKind.INTERACTION], clock=self.scheduler
            ),
            clock=self.scheduler,
        )

    async def at_ms(self, ms: float, event: str | None = None) -> None:
        delta = ms / 1000.0 - self.scheduler.elapsed
        if delta > 0:
            self.scheduler.advance(delta)
        await self.tracker.drain()
        if event is not None:
            self.element.dispatch(event)
            await self.tracker.drain()


# --- Scenarios ---


def test_scenario_a_held_past_threshold_records_once():
    world = World()

    async def run():
        world.tracker.mount(world.element)
        await world.at_ms(0, "mouseenter")
        await world.at_ms(3100)
        return await ViewAggregator(world.ledger).count(world.content_id)

    count = asyncio.run(run())

    assert world.ledger.count_calls("insert") == 1
    assert world.ledger.calls[-1] == ("insert", world.viewer_id, world.content_id)
    [viewed_at] = world.ledger.inserted_at
    assert DEFAULT_EPOCH + timedelta(seconds=3) <= viewed_at <= DEFAULT_EPOCH + timedelta(seconds=3.1)
    assert count.count == 1


def test_scenario_b_interrupted_then_held_records_once():
    world = World()

    async def run():
        world.tracker.mount(world.element)
        await world.at_ms(0, "mouseenter")
        await world.at_ms(1000, "mouseleave")
        await world.at_ms(5000, "mouseenter")
        await world.at_ms(8000)
        await world.at_ms(20000)

    asyncio.run(run())

    assert len(world.ledger.records()) == 1
    assert world.ledger.inserted_at == [DEFAULT_EPOCH + timedelta(seconds=8)]


def test_scenario_c_two_tabs_record_at_once():
    viewer, content, creator = uuid4(), uuid4(), uuid4()
    ledger = SpyLedger(hold_exists_for=2)
    tab_one, tab_two = ViewRecorder(ledger), ViewRecorder(ledger)

    async def run():
        return await asyncio.gather(
            tab_one.record(viewer, content, creator),
            tab_two.record(viewer, content, creator),
        )

    results = asyncio.run(run())

    assert all(r.success for r in results)
    assert sorted(r.reason.value for r in results) == ["already_recorded", "recorded"]
    assert ledger.count_calls("insert") == 2
    assert len(ledger.records()) == 1


# --- Properties ---


@pytest.mark.parametrize("confirms", [1, 2, 5])
def test_dedup_serial_confirms(confirms):
    viewer, content = uuid4(), uuid4()
    ledger = SpyLedger()
    recorder = ViewRecorder(ledger)

    async def run():
        return [await recorder.record(viewer, content) for _ in range(confirms)]

    results = asyncio.run(run())

    assert len(ledger.records()) == 1
    assert results[0].reason == RecordReason.RECORDED
    assert all(r.reason == RecordReason.ALREADY_RECORDED for r in results[1:])


def test_dedup_across_remounts():
    world = World()

    async def run():
        for _ in range(3):
            world.tracker = world.new_tracker()
            world.tracker.mount(world.element)
            await world.at_ms(world.scheduler.elapsed * 1000, "click")
            world.tracker.unmount()

    asyncio.run(run())
    assert len(world.ledger.records()) == 1


def test_self_view_never_touches_ledger():
    creator = uuid4()
    world = World(viewer_id=creator, creator_id=creator)

    async def run():
        world.tracker.mount(world.element)
        for _ in range(3):
            await world.at_ms(world.scheduler.elapsed * 1000, "click")
        recorder = ViewRecorder(world.ledger)
        for _ in range(3):
            direct = await recorder.record(creator, world.content_id, creator)
            assert direct.reason == RecordReason.SELF_VIEW

    asyncio.run(run())

    assert world.tracker.last_result.reason == RecordReason.SELF_VIEW
    assert world.ledger.calls == []


def test_interruption_releases_timer():
    world = World()

    async def run():
        world.tracker.mount(world.element)
        await world.at_ms(0, "mouseenter")
        await world.at_ms(2900, "mouseleave")
        assert world.scheduler.pending() == 0
        await world.at_ms(60_000)

    asyncio.run(run())
    assert world.ledger.calls == []


def test_immediate_confirm_at_zero_ignores_threshold():
    scheduler = ManualScheduler()
    confirmations: list[DwellConfirmed] = []
    machine = DwellStateMachine(
        uuid4(), DwellConfig(min_dwell_seconds=3600), scheduler, confirmations.append, clock=scheduler
    )

    machine.handle(
        EngagementSignal(
            content_id=machine.content_id,
            kind=SignalKind.IMMEDIATE_CONFIRM,
            timestamp=scheduler.now(),
        )
    )

    assert machine.is_confirmed
    assert confirmations[0].confirmed_at == DEFAULT_EPOCH
    assert scheduler.pending() == 0


def test_teardown_while_watching_prevents_ledger_calls():
    world = World()

    async def run():
        world.tracker.mount(world.element)
        await world.at_ms(0, "mouseenter")
        world.tracker.unmount()
        assert world.scheduler.pending() == 0
        await world.at_ms(10_000)

    asyncio.run(run())

    assert world.ledger.calls == []
    assert world.element.listener_count() == 0


def test_visibility_threshold_zero_means_any_pixel():
    scheduler = ManualScheduler()
    viewport = DevViewport()
    element = DevElement()
    ledger = InMemoryViewLedger()
    tracker = ViewTracker(
        content_id=uuid4(),
        creator_id=None,
        recorder=ViewRecorder(ledger, clock=scheduler),
        identity=StaticIdentity(uuid4()),
        timer=scheduler,
        config=resolve_tracking_config("image", visibility_threshold_ratio=0.0),
        observer_factory=viewport,
        clock=scheduler,
    )

    async def run():
        with tracker.mounted(element):
            viewport.set_ratio(element, 0.0)
            scheduler.advance(5)
            await tracker.drain()
            assert ledger.records() == []
            viewport.set_ratio(element, 0.01)
            scheduler.advance(3)
            await tracker.drain()

    asyncio.run(run())
    assert len(ledger.records()) == 1

"""
End-to-end tracking: dev DOM + virtual time + real ledgers.
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

from src.adapters.dev_dom import DevElement, DevViewport
from src.adapters.identity import StaticIdentity
from src.adapters.manual_scheduler import DEFAULT_EPOCH, ManualScheduler
from src.adapters.memory_ledger import InMemoryViewLedger
from src.app_shell.simulate import run_simulation
from src.components.tracking import ContentKind, ViewTracker, resolve_tracking_config
from src.components.views import RecordReason, ViewRecorder
from src.rules.models import Rules


def build_tracker(ledger, scheduler, viewport, *, kind=ContentKind.IMAGE, viewer_id=None, rules=None):
    return ViewTracker(
        content_id=uuid4(),
        creator_id=uuid4(),
        recorder=ViewRecorder(ledger, clock=scheduler),
        identity=StaticIdentity(viewer_id or uuid4()),
        timer=scheduler,
        kind=kind,
        config=resolve_tracking_config(kind, rules.tracking if rules else None),
        observer_factory=viewport,
        clock=scheduler,
    )


def test_image_visible_for_threshold_records(rules):
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    element = DevElement("photo")
    tracker = build_tracker(ledger, scheduler, viewport, rules=rules)

    async def run():
        with tracker.mounted(element):
            viewport.set_ratio(element, 0.75)
            scheduler.advance(3)
            await tracker.drain()

    asyncio.run(run())

    [record] = ledger.records()
    assert record.content_id == tracker.content_id
    assert (record.viewed_at - DEFAULT_EPOCH).total_seconds() == 3
    assert viewport.active_observers() == []
    assert element.listener_count() == 0


def test_already_visible_element_starts_on_mount():
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    element = DevElement()
    viewport.set_ratio(element, 1.0)
    tracker = build_tracker(ledger, scheduler, viewport)

    async def run():
        tracker.mount(element)
        scheduler.advance(3)
        await tracker.drain()
        tracker.unmount()

    asyncio.run(run())
    assert len(ledger.records()) == 1


def test_hover_and_visibility_overlap_keeps_one_timer():
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    element = DevElement()
    tracker = build_tracker(ledger, scheduler, viewport)

    tracker.mount(element)
    viewport.set_ratio(element, 1.0)
    element.dispatch("mouseenter")

    assert scheduler.pending() == 1
    tracker.unmount()
    assert scheduler.pending() == 0


def test_media_play_ended_records_immediately():
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    element = DevElement("video")
    tracker = build_tracker(ledger, scheduler, viewport, kind=ContentKind.MEDIA)

    async def run():
        with tracker.mounted(element):
            element.dispatch("play")
            scheduler.advance(4)
            element.dispatch("ended")
            await tracker.drain()

    asyncio.run(run())

    assert tracker.has_recorded
    assert len(ledger.records()) == 1


def test_media_needs_ten_seconds():
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    element = DevElement("video")
    tracker = build_tracker(ledger, scheduler, viewport, kind=ContentKind.MEDIA)

    async def run():
        with tracker.mounted(element):
            element.dispatch("play")
            scheduler.advance(9)
            await tracker.drain()
            assert ledger.records() == []
            scheduler.advance(1)
            await tracker.drain()

    asyncio.run(run())
    assert len(ledger.records()) == 1


def test_two_trackers_same_viewer_same_content_one_row():
    ledger, scheduler, viewport = InMemoryViewLedger(), ManualScheduler(), DevViewport()
    viewer, content = uuid4(), uuid4()
    first, second = DevElement("grid"), DevElement("lightbox")

    def tracker():
        return ViewTracker(
            content_id=content,
            creator_id=None,
            recorder=ViewRecorder(ledger, clock=scheduler),
            identity=StaticIdentity(viewer),
            timer=scheduler,
            observer_factory=viewport,
            clock=scheduler,
        )

    a, b = tracker(), tracker()

    async def run():
        a.mount(first)
        b.mount(second)
        first.dispatch("click")
        second.dispatch("click")
        await a.drain()
        await b.drain()

    asyncio.run(run())

    assert len(ledger.records()) == 1
    assert {a.last_result.reason, b.last_result.reason} == {
        RecordReason.RECORDED,
        RecordReason.ALREADY_RECORDED,
    }


def test_simulation_script_against_sqlite(sqlite_ledger, rules):
    viewer, content = uuid4(), uuid4()
    script = {
        "kind": "image",
        "viewer_id": str(viewer),
        "content_id": str(content),
        "events": [
            {"at_ms": 0, "visibility": 0.9},
            {"at_ms": 1000, "visibility": 0.1},
            {"at_ms": 1200, "event": "mouseenter"},
        ],
        "end_ms": 4500,
    }

    outcome = asyncio.run(run_simulation(script, sqlite_ledger, rules))

    assert outcome.mounted
    assert outcome.recorded
    assert outcome.result.reason == RecordReason.RECORDED
    assert sqlite_ledger.count_sync(content) == 1


def test_simulation_interrupted_dwell_not_recorded():
    ledger = InMemoryViewLedger()
    script = {
        "viewer_id": str(uuid4()),
        "content_id": str(uuid4()),
        "events": [
            {"at_ms": 0, "event": "mouseenter"},
            {"at_ms": 2000, "event": "mouseleave"},
            {"at_ms": 2500, "event": "mouseenter"},
        ],
        "end_ms": 5000,
    }

    outcome = asyncio.run(run_simulation(script, ledger, Rules()))

    assert not outcome.recorded
    assert outcome.result is None
    assert ledger.records() == []


def test_simulation_anonymous_does_not_mount():
    outcome = asyncio.run(
        run_simulation({"content_id": str(uuid4()), "events": []}, InMemoryViewLedger(), Rules())
    )
    assert not outcome.mounted

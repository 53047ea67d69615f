"""
Signal script replay.

Drives a ViewTracker on virtual time from a JSON script, against any
ledger. Useful for checking dwell settings before rolling them out.

Script format:
    {
        "kind": "image",
        "viewer_id": "<uuid>",            # omit for anonymous
        "content_id": "<uuid>",
        "creator_id": "<uuid>",           # optional
        "entitled": true,                 # optional
        "min_dwell_seconds": 3,           # optional override
        "end_ms": 5000,                   # optional, run the clock to here
        "events": [
            {"at_ms": 0, "visibility": 0.8},
            {"at_ms": 1000, "event": "mouseleave"}
        ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from src.adapters.dev_dom import DevElement, DevViewport
from src.adapters.identity import StaticIdentity
from src.adapters.manual_scheduler import ManualScheduler
from src.components.tracking import ContentKind, ViewTracker, resolve_tracking_config
from src.components.views import RecordViewOutput, ViewLedgerPort, ViewRecorder
from src.rules.loader import ledger_config
from src.rules.models import Rules


@dataclass(frozen=True)
class SimulationResult:
    mounted: bool
    recorded: bool
    result: RecordViewOutput | None
    elapsed_ms: float


def _parse_uuid(value: Any) -> UUID | None:
    return UUID(str(value)) if value else None


async def run_simulation(script: dict[str, Any], ledger: ViewLedgerPort, rules: Rules) -> SimulationResult:
    """
    Replay a signal script.

    Raises:
        ValueError: Malformed script
    """
    content_id = _parse_uuid(script.get("content_id"))
    if content_id is None:
        raise ValueError("Script requires content_id")

    kind = ContentKind(script.get("kind", ContentKind.IMAGE.value))
    overrides: dict[str, Any] = {}
    if "min_dwell_seconds" in script:
        overrides["min_dwell_seconds"] = float(script["min_dwell_seconds"])

    scheduler = ManualScheduler()
    viewport = DevViewport()
    element = DevElement("simulated")

    tracker = ViewTracker(
        content_id=content_id,
        creator_id=_parse_uuid(script.get("creator_id")),
        recorder=ViewRecorder(ledger, clock=scheduler, config=ledger_config(rules)),
        identity=StaticIdentity(_parse_uuid(script.get("viewer_id"))),
        timer=scheduler,
        kind=kind,
        config=resolve_tracking_config(kind, rules.tracking, **overrides),
        observer_factory=viewport,
        clock=scheduler,
        is_entitled=bool(script.get("entitled", True)),
    )

    steps = sorted(script.get("events", []), key=lambda s: float(s.get("at_ms", 0)))

    with tracker.mounted(element) as mounted:
        for step in steps:
            _advance_to(scheduler, float(step.get("at_ms", 0)))
            await tracker.drain()
            if "visibility" in step:
                viewport.set_ratio(element, float(step["visibility"]))
            elif "event" in step:
                element.dispatch(str(step["event"]))
            else:
                raise ValueError(f"Step needs 'event' or 'visibility': {step}")
            await tracker.drain()

        if "end_ms" in script:
            _advance_to(scheduler, float(script["end_ms"]))
        await tracker.drain()

    return SimulationResult(
        mounted=mounted,
        recorded=tracker.has_recorded,
        result=tracker.last_result,
        elapsed_ms=scheduler.elapsed * 1000,
    )


def _advance_to(scheduler: ManualScheduler, at_ms: float) -> None:
    delta = at_ms / 1000.0 - scheduler.elapsed
    if delta > 0:
        scheduler.advance(delta)

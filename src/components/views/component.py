"""
ViewRecorder - Deduplicated view recording.

Converts one confirmed engagement into at most one persisted ViewRecord.

Key behaviors:
- Anonymous viewers are never recorded and the ledger is not contacted
- A creator viewing their own content is a successful no-op (SELF_VIEW)
- Check-then-insert; an insert that loses the race to a concurrent
  recorder is downgraded to ALREADY_RECORDED
- Any other ledger failure, including a timeout, is returned as
  PERSISTENCE_FAILURE and never raised or retried inline

Correctness under concurrent writers rests on the ledger's uniqueness
constraint, not on coordination between recorders.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID

from .models import (
    DEFAULT_LEDGER_CONFIG,
    ERROR_PERSISTENCE,
    ERROR_TIMEOUT,
    LedgerConfig,
    RecordReason,
    RecordViewOutput,
    ViewError,
)
from .ports import ClockPort, UniqueViolationError, ViewLedgerPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


# --- Pure Functions (Functional Core) ---


def classify_record_request(viewer_id: UUID | None, creator_id: UUID | None) -> RecordReason | None:
    """
    Decide outcomes that need no ledger round-trip.

    Returns:
        NOT_AUTHENTICATED or SELF_VIEW, or None when the ledger must be consulted
    """
    if viewer_id is None:
        return RecordReason.NOT_AUTHENTICATED
    if creator_id is not None and viewer_id == creator_id:
        return RecordReason.SELF_VIEW
    return None


async def call_with_timeout(call: Awaitable[T], timeout_seconds: float | None) -> T:
    """Await a ledger call, bounded by timeout_seconds when set."""
    if timeout_seconds is None:
        return await call
    return await asyncio.wait_for(call, timeout=timeout_seconds)


# --- Recorder ---


class ViewRecorder:
    """Idempotent record-view operation against a ledger."""

    def __init__(
        self,
        ledger: ViewLedgerPort,
        *,
        clock: ClockPort | None = None,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    ) -> None:
        self._ledger = ledger
        self._clock = clock
        self._config = config

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._clock.now()
        return datetime.now(UTC)

    async def record(
        self,
        viewer_id: UUID | None,
        content_id: UUID,
        creator_id: UUID | None = None,
    ) -> RecordViewOutput:
        """
        Record a view of content_id by viewer_id.

        Args:
            viewer_id: Current viewer, None when anonymous
            content_id: Viewed content
            creator_id: Owner of the content, for the self-view exemption

        Returns:
            RecordViewOutput; success is False only for NOT_AUTHENTICATED
            and PERSISTENCE_FAILURE
        """
        early = classify_record_request(viewer_id, creator_id)
        if early == RecordReason.NOT_AUTHENTICATED:
            return RecordViewOutput(reason=early, success=False)
        if early == RecordReason.SELF_VIEW:
            logger.debug("Self view of %s by creator, not recorded", content_id)
            return RecordViewOutput(reason=early)

        assert viewer_id is not None
        timeout = self._config.timeout_seconds

        try:
            if await call_with_timeout(self._ledger.exists(viewer_id, content_id), timeout):
                logger.debug("View of %s by %s already recorded", content_id, viewer_id)
                return RecordViewOutput(reason=RecordReason.ALREADY_RECORDED)

            record = await call_with_timeout(
                self._ledger.insert(viewer_id, content_id, self._now()), timeout
            )
        except UniqueViolationError:
            logger.debug("Concurrent recorder won for %s by %s", content_id, viewer_id)
            return RecordViewOutput(reason=RecordReason.ALREADY_RECORDED)
        except TimeoutError:
            logger.warning("Ledger timed out recording view of %s by %s", content_id, viewer_id)
            return RecordViewOutput(
                reason=RecordReason.PERSISTENCE_FAILURE,
                errors=[ViewError(code=ERROR_TIMEOUT, message="Ledger call timed out")],
                success=False,
            )
        except Exception as e:
            logger.warning("Failed to record view of %s by %s: %s", content_id, viewer_id, e)
            return RecordViewOutput(
                reason=RecordReason.PERSISTENCE_FAILURE,
                errors=[ViewError(code=ERROR_PERSISTENCE, message=str(e) or type(e).__name__)],
                success=False,
            )

        logger.info("Recorded view of %s by %s", content_id, viewer_id)
        return RecordViewOutput(reason=RecordReason.RECORDED, record=record)

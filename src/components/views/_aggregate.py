"""
ViewAggregator - Read-only view queries.

Key behaviors:
- count per content
- per-viewer history, newest first, bounded by a clamped limit
- has_viewed lookup for one (viewer, content) pair
- failures come back as empty results with errors, never as exceptions
"""

from __future__ import annotations

import logging
from uuid import UUID

from .component import call_with_timeout
from .models import (
    DEFAULT_LEDGER_CONFIG,
    ERROR_NOT_AUTHENTICATED,
    ERROR_PERSISTENCE,
    ERROR_TIMEOUT,
    HasViewedOutput,
    LedgerConfig,
    ViewCountOutput,
    ViewError,
    ViewHistoryOutput,
)
from .ports import ViewLedgerPort

logger = logging.getLogger(__name__)


def clamp_history_limit(limit: int | None, config: LedgerConfig = DEFAULT_LEDGER_CONFIG) -> int:
    """Default a missing limit and clamp to 1..max_history_limit."""
    if limit is None:
        limit = config.history_limit
    return max(1, min(limit, config.max_history_limit))


def _failure(e: Exception) -> ViewError:
    if isinstance(e, TimeoutError):
        return ViewError(code=ERROR_TIMEOUT, message="Ledger call timed out")
    return ViewError(code=ERROR_PERSISTENCE, message=str(e) or type(e).__name__)


_NOT_AUTHENTICATED = ViewError(code=ERROR_NOT_AUTHENTICATED, message="No current viewer")


class ViewAggregator:
    """Queries layered on the view ledger."""

    def __init__(self, ledger: ViewLedgerPort, *, config: LedgerConfig = DEFAULT_LEDGER_CONFIG):
        self._ledger = ledger
        self._config = config

    async def count(self, content_id: UUID) -> ViewCountOutput:
        try:
            total = await call_with_timeout(
                self._ledger.count(content_id), self._config.timeout_seconds
            )
        except Exception as e:
            logger.warning("View count failed for %s: %s", content_id, e)
            return ViewCountOutput(
                content_id=content_id, count=0, errors=[_failure(e)], success=False
            )
        return ViewCountOutput(content_id=content_id, count=total)

    async def list_for_viewer(
        self, viewer_id: UUID | None, limit: int | None = None
    ) -> ViewHistoryOutput:
        if viewer_id is None:
            return ViewHistoryOutput(items=(), errors=[_NOT_AUTHENTICATED], success=False)

        bounded = clamp_history_limit(limit, self._config)
        try:
            rows = await call_with_timeout(
                self._ledger.list_for_viewer(viewer_id, bounded), self._config.timeout_seconds
            )
        except Exception as e:
            logger.warning("View history failed for %s: %s", viewer_id, e)
            return ViewHistoryOutput(items=(), errors=[_failure(e)], success=False)

        ordered = sorted(rows, key=lambda item: item.record.viewed_at, reverse=True)
        return ViewHistoryOutput(items=tuple(ordered[:bounded]))

    async def has_viewed(self, viewer_id: UUID | None, content_id: UUID) -> HasViewedOutput:
        if viewer_id is None:
            return HasViewedOutput(
                content_id=content_id,
                has_viewed=False,
                errors=[_NOT_AUTHENTICATED],
                success=False,
            )
        try:
            record = await call_with_timeout(
                self._ledger.get(viewer_id, content_id), self._config.timeout_seconds
            )
        except Exception as e:
            logger.warning("View lookup failed for %s by %s: %s", content_id, viewer_id, e)
            return HasViewedOutput(
                content_id=content_id, has_viewed=False, errors=[_failure(e)], success=False
            )
        return HasViewedOutput(
            content_id=content_id,
            has_viewed=record is not None,
            viewed_at=record.viewed_at if record else None,
        )

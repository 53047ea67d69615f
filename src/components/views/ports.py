"""
Views component port definitions.

The ledger enforces uniqueness of (viewer_id, content_id). Adapters raise
UniqueViolationError when an insert loses that race and LedgerError for
everything else.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from .models import ViewHistoryItem, ViewRecord


class LedgerError(Exception):
    """Ledger operation failed."""


class UniqueViolationError(LedgerError):
    """A record for (viewer_id, content_id) already exists."""


class ViewLedgerPort(Protocol):
    """Persistence store of view records."""

    async def exists(self, viewer_id: UUID, content_id: UUID) -> bool:
        ...

    async def insert(self, viewer_id: UUID, content_id: UUID, viewed_at: datetime) -> ViewRecord:
        """
        Persist a new view record.

        Raises:
            UniqueViolationError: The pair is already recorded
            LedgerError: Any other persistence failure
        """
        ...

    async def get(self, viewer_id: UUID, content_id: UUID) -> ViewRecord | None:
        ...

    async def count(self, content_id: UUID) -> int:
        ...

    async def list_for_viewer(self, viewer_id: UUID, limit: int) -> list[ViewHistoryItem]:
        """Views by a viewer, newest first, at most limit rows."""
        ...


class IdentityPort(Protocol):
    def current_viewer_id(self) -> UUID | None:
        """Current viewer, or None when nobody is signed in."""
        ...


class ClockPort(Protocol):
    def now(self) -> datetime:
        """Return current UTC time."""
        ...

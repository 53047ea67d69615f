"""
In-Memory View Ledger.

ViewLedgerPort for testing/dev. Each call completes without suspending, so
a single call is atomic on the event loop; uniqueness is enforced on insert
exactly like the SQL constraint.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from src.components.views import (
    ContentSummary,
    CreatorSummary,
    UniqueViolationError,
    ViewHistoryItem,
    ViewRecord,
)


class InMemoryViewLedger:
    """In-memory ledger keyed by (viewer_id, content_id)."""

    def __init__(self) -> None:
        self._records: dict[tuple[UUID, UUID], ViewRecord] = {}
        self._content: dict[UUID, ContentSummary] = {}
        self._creators: dict[UUID, CreatorSummary] = {}

    def add_content(self, content: ContentSummary, creator: CreatorSummary | None = None) -> None:
        """Register metadata joined onto history rows."""
        self._content[content.id] = content
        if creator is not None:
            self._creators[creator.id] = creator

    def records(self) -> list[ViewRecord]:
        return list(self._records.values())

    async def exists(self, viewer_id: UUID, content_id: UUID) -> bool:
        return (viewer_id, content_id) in self._records

    async def insert(self, viewer_id: UUID, content_id: UUID, viewed_at: datetime) -> ViewRecord:
        key = (viewer_id, content_id)
        if key in self._records:
            raise UniqueViolationError(f"View already recorded for {viewer_id}/{content_id}")
        record = ViewRecord(viewer_id=viewer_id, content_id=content_id, viewed_at=viewed_at)
        self._records[key] = record
        return record

    async def get(self, viewer_id: UUID, content_id: UUID) -> ViewRecord | None:
        return self._records.get((viewer_id, content_id))

    async def count(self, content_id: UUID) -> int:
        return sum(1 for r in self._records.values() if r.content_id == content_id)

    async def list_for_viewer(self, viewer_id: UUID, limit: int) -> list[ViewHistoryItem]:
        mine = [r for r in self._records.values() if r.viewer_id == viewer_id]
        mine.sort(key=lambda r: r.viewed_at, reverse=True)

        items: list[ViewHistoryItem] = []
        for record in mine[:limit]:
            content = self._content.get(record.content_id)
            creator = None
            if content is not None and content.creator_id is not None:
                creator = self._creators.get(content.creator_id)
            items.append(ViewHistoryItem(record=record, content=content, creator=creator))
        return items

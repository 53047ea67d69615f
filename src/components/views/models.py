"""
Views component input/output models.

Invariants:
- At most one ViewRecord per (viewer_id, content_id), for all time
- ViewRecords are never mutated or deleted here
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

# --- Enums ---


class RecordReason(str, Enum):
    """Outcome of a record attempt."""

    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"
    SELF_VIEW = "self_view"
    NOT_AUTHENTICATED = "not_authenticated"
    PERSISTENCE_FAILURE = "persistence_failure"


# Error codes
ERROR_NOT_AUTHENTICATED = "not_authenticated"
ERROR_PERSISTENCE = "persistence_failure"
ERROR_TIMEOUT = "ledger_timeout"


# --- Configuration ---


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger call limits."""

    timeout_seconds: float | None = 5.0
    history_limit: int = 50
    max_history_limit: int = 200


DEFAULT_LEDGER_CONFIG = LedgerConfig()


# --- Records ---


@dataclass(frozen=True)
class ViewRecord:
    viewer_id: UUID
    content_id: UUID
    viewed_at: datetime


@dataclass(frozen=True)
class ContentSummary:
    id: UUID
    title: str
    type: str
    creator_id: UUID | None = None
    price: float | None = None
    url: str | None = None
    thumbnail_url: str | None = None


@dataclass(frozen=True)
class CreatorSummary:
    id: UUID
    name: str
    photo_url: str | None = None


@dataclass(frozen=True)
class ViewHistoryItem:
    """A view joined with content and creator metadata."""

    record: ViewRecord
    content: ContentSummary | None = None
    creator: CreatorSummary | None = None


@dataclass(frozen=True)
class ViewError:
    code: str
    message: str


# --- Output Models ---


@dataclass(frozen=True)
class RecordViewOutput:
    reason: RecordReason
    record: ViewRecord | None = None
    errors: list[ViewError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ViewCountOutput:
    content_id: UUID
    count: int
    errors: list[ViewError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ViewHistoryOutput:
    items: tuple[ViewHistoryItem, ...]
    errors: list[ViewError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class HasViewedOutput:
    content_id: UUID
    has_viewed: bool
    viewed_at: datetime | None = None
    errors: list[ViewError] = field(default_factory=list)
    success: bool = True

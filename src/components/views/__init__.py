"""
Views component - Deduplicated view recording and queries.
"""

from ._aggregate import ViewAggregator, clamp_history_limit
from .component import ViewRecorder, call_with_timeout, classify_record_request
from .models import (
    DEFAULT_LEDGER_CONFIG,
    ERROR_NOT_AUTHENTICATED,
    ERROR_PERSISTENCE,
    ERROR_TIMEOUT,
    ContentSummary,
    CreatorSummary,
    HasViewedOutput,
    LedgerConfig,
    RecordReason,
    RecordViewOutput,
    ViewCountOutput,
    ViewError,
    ViewHistoryItem,
    ViewHistoryOutput,
    ViewRecord,
)
from .ports import (
    ClockPort,
    IdentityPort,
    LedgerError,
    UniqueViolationError,
    ViewLedgerPort,
)

__all__ = [
    # Services
    "ViewRecorder",
    "ViewAggregator",
    # Pure functions
    "classify_record_request",
    "clamp_history_limit",
    "call_with_timeout",
    # Models
    "ContentSummary",
    "CreatorSummary",
    "HasViewedOutput",
    "LedgerConfig",
    "DEFAULT_LEDGER_CONFIG",
    "RecordReason",
    "RecordViewOutput",
    "ViewCountOutput",
    "ViewError",
    "ViewHistoryItem",
    "ViewHistoryOutput",
    "ViewRecord",
    "ERROR_NOT_AUTHENTICATED",
    "ERROR_PERSISTENCE",
    "ERROR_TIMEOUT",
    # Ports
    "ClockPort",
    "IdentityPort",
    "LedgerError",
    "UniqueViolationError",
    "ViewLedgerPort",
]

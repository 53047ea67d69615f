import asyncio
import sqlite3
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.sqlite.ledger import SQLiteViewLedger
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.components.views import (
    ContentSummary,
    CreatorSummary,
    LedgerError,
    RecordReason,
    UniqueViolationError,
    ViewAggregator,
    ViewRecorder,
)

T0 = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)


def test_migrator_creates_views_table(db_path):
    conn = sqlite3.connect(db_path)
    tables = {
        row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    applied = [row[0] for row in conn.execute("SELECT filename FROM _migrations")]
    conn.close()

    assert {"views", "content_items", "creators", "_migrations"} <= tables
    assert applied == ["001_views.sql"]


def test_migrator_is_idempotent(db_path):
    assert SQLiteMigrator(db_path, "migrations").run_migrations() == []


def test_insert_and_get(sqlite_ledger):
    viewer, content = uuid4(), uuid4()

    async def run():
        await sqlite_ledger.insert(viewer, content, T0)
        return await sqlite_ledger.get(viewer, content), await sqlite_ledger.exists(viewer, content)

    record, exists = asyncio.run(run())

    assert exists
    assert record.viewer_id == viewer
    assert record.content_id == content
    assert record.viewed_at == T0


def test_duplicate_insert_is_unique_violation(sqlite_ledger):
    viewer, content = uuid4(), uuid4()
    sqlite_ledger.insert_sync(viewer, content, T0)

    with pytest.raises(UniqueViolationError):
        sqlite_ledger.insert_sync(viewer, content, T0 + timedelta(seconds=1))

    assert sqlite_ledger.count_sync(content) == 1


def test_missing_table_is_ledger_error(tmp_path):
    ledger = SQLiteViewLedger(str(tmp_path / "empty.db"))
    with pytest.raises(LedgerError) as exc:
        ledger.count_sync(uuid4())
    assert not isinstance(exc.value, UniqueViolationError)


def test_count_per_content(sqlite_ledger):
    content = uuid4()
    for _ in range(3):
        sqlite_ledger.insert_sync(uuid4(), content, T0)
    sqlite_ledger.insert_sync(uuid4(), uuid4(), T0)

    assert asyncio.run(sqlite_ledger.count(content)) == 3


def test_history_joins_metadata_newest_first(sqlite_ledger):
    viewer = uuid4()
    creator = CreatorSummary(id=uuid4(), name="Grace", photo_url=None)
    known = ContentSummary(
        id=uuid4(), title="Harbour", type="image", creator_id=creator.id, price=2.5
    )
    sqlite_ledger.save_creator(creator)
    sqlite_ledger.save_content(known)

    orphan = uuid4()
    sqlite_ledger.insert_sync(viewer, known.id, T0)
    sqlite_ledger.insert_sync(viewer, orphan, T0 + timedelta(minutes=1))

    items = asyncio.run(sqlite_ledger.list_for_viewer(viewer, 10))

    assert [i.record.content_id for i in items] == [orphan, known.id]
    assert items[0].content is None and items[0].creator is None
    assert items[1].content == known
    assert items[1].creator == creator


def test_history_limit(sqlite_ledger):
    viewer = uuid4()
    for minute in range(5):
        sqlite_ledger.insert_sync(viewer, uuid4(), T0 + timedelta(minutes=minute))

    items = asyncio.run(ViewAggregator(sqlite_ledger).list_for_viewer(viewer, limit=2))

    assert [i.record.viewed_at for i in items.items] == [
        T0 + timedelta(minutes=4),
        T0 + timedelta(minutes=3),
    ]


def test_concurrent_recorders_store_one_row(sqlite_ledger):
    viewer, content = uuid4(), uuid4()
    recorders = [ViewRecorder(sqlite_ledger) for _ in range(5)]

    async def run():
        return await asyncio.gather(*(r.record(viewer, content) for r in recorders))

    results = asyncio.run(run())
    reasons = sorted(r.reason.value for r in results)

    assert reasons.count(RecordReason.RECORDED.value) == 1
    assert reasons.count(RecordReason.ALREADY_RECORDED.value) == 4
    assert sqlite_ledger.count_sync(content) == 1

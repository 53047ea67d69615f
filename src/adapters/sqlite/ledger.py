"""
SQLite View Ledger Adapter.

Implements ViewLedgerPort on SQLite. Uniqueness of (viewer_id, content_id)
is a table constraint (migrations/001_views.sql); a losing insert surfaces
as UniqueViolationError.

Queries run on a fresh connection per call inside asyncio.to_thread so the
event loop never blocks on disk I/O.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.components.views import (
    ContentSummary,
    CreatorSummary,
    LedgerError,
    UniqueViolationError,
    ViewHistoryItem,
    ViewRecord,
)

DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


class SQLiteViewLedger:
    """SQLite implementation of ViewLedgerPort."""

    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    # --- Async port ---

    async def exists(self, viewer_id: UUID, content_id: UUID) -> bool:
        return await asyncio.to_thread(self.exists_sync, viewer_id, content_id)

    async def insert(self, viewer_id: UUID, content_id: UUID, viewed_at: datetime) -> ViewRecord:
        return await asyncio.to_thread(self.insert_sync, viewer_id, content_id, viewed_at)

    async def get(self, viewer_id: UUID, content_id: UUID) -> ViewRecord | None:
        return await asyncio.to_thread(self.get_sync, viewer_id, content_id)

    async def count(self, content_id: UUID) -> int:
        return await asyncio.to_thread(self.count_sync, content_id)

    async def list_for_viewer(self, viewer_id: UUID, limit: int) -> list[ViewHistoryItem]:
        return await asyncio.to_thread(self.list_for_viewer_sync, viewer_id, limit)

    # --- Sync implementation ---

    def exists_sync(self, viewer_id: UUID, content_id: UUID) -> bool:
        return self.get_sync(viewer_id, content_id) is not None

    def get_sync(self, viewer_id: UUID, content_id: UUID) -> ViewRecord | None:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        try:
            row = conn.execute(
                "SELECT viewer_id, content_id, viewed_at FROM views "
                "WHERE viewer_id = ? AND content_id = ?",
                (str(viewer_id), str(content_id)),
            ).fetchone()
            return self._map_record(row) if row else None
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        finally:
            conn.close()

    def insert_sync(self, viewer_id: UUID, content_id: UUID, viewed_at: datetime) -> ViewRecord:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        try:
            conn.execute(
                """
                INSERT INTO views (id, viewer_id, content_id, viewed_at)
                VALUES (?, ?, ?, ?)
                """,
                (str(uuid4()), str(viewer_id), str(content_id), viewed_at.isoformat()),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e).upper():
                raise UniqueViolationError(str(e)) from e
            raise LedgerError(str(e)) from e
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        finally:
            conn.close()
        return ViewRecord(viewer_id=viewer_id, content_id=content_id, viewed_at=viewed_at)

    def count_sync(self, content_id: UUID) -> int:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM views WHERE content_id = ?",
                (str(content_id),),
            ).fetchone()
            return int(row["total"]) if row else 0
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        finally:
            conn.close()

    def list_for_viewer_sync(self, viewer_id: UUID, limit: int) -> list[ViewHistoryItem]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        try:
            rows = conn.execute(
                """
                SELECT v.viewer_id, v.content_id, v.viewed_at,
                       c.id AS c_id, c.title AS c_title, c.type AS c_type,
                       c.price AS c_price, c.url AS c_url,
                       c.thumbnail_url AS c_thumbnail_url, c.creator_id AS c_creator_id,
                       u.id AS u_id, u.name AS u_name, u.photo_url AS u_photo_url
                FROM views v
                LEFT JOIN content_items c ON c.id = v.content_id
                LEFT JOIN creators u ON u.id = c.creator_id
                WHERE v.viewer_id = ?
                ORDER BY v.viewed_at DESC
                LIMIT ?
                """,
                (str(viewer_id), limit),
            ).fetchall()
            return [self._map_history(r) for r in rows]
        except sqlite3.Error as e:
            raise LedgerError(str(e)) from e
        finally:
            conn.close()

    # --- Metadata (joined onto history) ---

    def save_creator(self, creator: CreatorSummary) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO creators (id, name, photo_url) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    photo_url=excluded.photo_url
                """,
                (str(creator.id), creator.name, creator.photo_url),
            )
            conn.commit()
        finally:
            conn.close()

    def save_content(self, content: ContentSummary) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content_items (
                    id, title, type, price, url, thumbnail_url, creator_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    type=excluded.type,
                    price=excluded.price,
                    url=excluded.url,
                    thumbnail_url=excluded.thumbnail_url,
                    creator_id=excluded.creator_id
                """,
                (
                    str(content.id),
                    content.title,
                    content.type,
                    content.price,
                    content.url,
                    content.thumbnail_url,
                    str(content.creator_id) if content.creator_id else None,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    # --- Mapping ---

    def _map_record(self, row: dict[str, Any]) -> ViewRecord:
        return ViewRecord(
            viewer_id=UUID(row["viewer_id"]),
            content_id=UUID(row["content_id"]),
            viewed_at=datetime.fromisoformat(row["viewed_at"]),
        )

    def _map_history(self, row: dict[str, Any]) -> ViewHistoryItem:
        content = None
        if row["c_id"]:
            content = ContentSummary(
                id=UUID(row["c_id"]),
                title=row["c_title"],
                type=row["c_type"],
                creator_id=parse_uuid(row["c_creator_id"]),
                price=row["c_price"],
                url=row["c_url"],
                thumbnail_url=row["c_thumbnail_url"],
            )
        creator = None
        if row["u_id"]:
            creator = CreatorSummary(
                id=UUID(row["u_id"]),
                name=row["u_name"],
                photo_url=row["u_photo_url"],
            )
        return ViewHistoryItem(record=self._map_record(row), content=content, creator=creator)

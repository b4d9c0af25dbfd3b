"""SQLite-backed archive store.

Usage::

    store = SqliteArchiveStore("archives.db")
    archive = await store.create(Archive.pending_for(link))

All sqlite3 calls are synchronous and run via asyncio.to_thread().
"""

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from linkradar_archive.models.archive import Archive
from linkradar_archive.storage.base import DuplicateArchiveError

SCHEMA = """
CREATE TABLE IF NOT EXISTS content_archives (
    id            TEXT PRIMARY KEY,
    link_id       TEXT NOT NULL UNIQUE,
    url           TEXT NOT NULL,
    status        TEXT NOT NULL,
    content_html  TEXT,
    content_text  TEXT,
    title         TEXT,
    description   TEXT,
    image_url     TEXT,
    metadata      TEXT,
    error_reason  TEXT,
    error_message TEXT,
    fetched_at    TEXT,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_content_archives_status ON content_archives(status);

CREATE TABLE IF NOT EXISTS content_archive_transitions (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    archive_id TEXT NOT NULL REFERENCES content_archives(id) ON DELETE CASCADE,
    to_state   TEXT NOT NULL,
    sort_key   INTEGER NOT NULL,
    metadata   TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    UNIQUE (archive_id, sort_key)
);
"""

_COLUMNS = (
    "id",
    "link_id",
    "url",
    "status",
    "content_html",
    "content_text",
    "title",
    "description",
    "image_url",
    "metadata",
    "error_reason",
    "error_message",
    "fetched_at",
    "created_at",
    "updated_at",
)


def connect(path: str | Path) -> sqlite3.Connection:
    """Open a connection with foreign keys enforced and the schema in place."""
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(SCHEMA)
    return conn


class SqliteArchiveStore:
    """ArchiveStore persisting to the content_archives / content_archive_transitions tables."""

    def __init__(self, path: str | Path) -> None:
        self._conn = connect(path)
        self._lock = threading.Lock()

    def close(self) -> None:
        self._conn.close()

    async def create(self, archive: Archive) -> Archive:
        await asyncio.to_thread(self._create, archive)
        return archive.model_copy(deep=True)

    async def get(self, archive_id: str) -> Archive | None:
        return await asyncio.to_thread(self._load, "id", archive_id)

    async def get_for_link(self, link_id: str) -> Archive | None:
        return await asyncio.to_thread(self._load, "link_id", link_id)

    async def save(self, archive: Archive) -> Archive:
        await asyncio.to_thread(self._save, archive)
        return archive.model_copy(deep=True)

    async def delete_for_link(self, link_id: str) -> bool:
        return await asyncio.to_thread(self._delete_for_link, link_id)

    # -- sync helpers (run in worker threads) --

    def _create(self, archive: Archive) -> None:
        row = _to_row(archive)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._lock, self._conn:
            try:
                self._conn.execute(
                    f"INSERT INTO content_archives ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    [row[c] for c in _COLUMNS],
                )
            except sqlite3.IntegrityError as exc:
                if "link_id" in str(exc):
                    raise DuplicateArchiveError(archive.link_id) from exc
                raise
            self._insert_transitions(archive)

    def _save(self, archive: Archive) -> None:
        row = _to_row(archive)
        assignments = ", ".join(f"{c} = ?" for c in _COLUMNS if c != "id")
        with self._lock, self._conn:
            cursor = self._conn.execute(
                f"UPDATE content_archives SET {assignments} WHERE id = ?",
                [row[c] for c in _COLUMNS if c != "id"] + [archive.id],
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Unknown archive {archive.id}")
            self._insert_transitions(archive)

    def _insert_transitions(self, archive: Archive) -> None:
        # The transition log is append-only; rows already stored are left alone.
        self._conn.executemany(
            """
            INSERT OR IGNORE INTO content_archive_transitions
                (archive_id, to_state, sort_key, metadata, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    archive.id,
                    t["to_state"],
                    t["sort_key"],
                    json.dumps(t["metadata"]),
                    t["created_at"],
                )
                for t in (t.model_dump(mode="json") for t in archive.transitions)
            ],
        )

    def _load(self, column: str, value: str) -> Archive | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT * FROM content_archives WHERE {column} = ?", (value,)
            ).fetchone()
            if row is None:
                return None
            transitions = self._conn.execute(
                """
                SELECT to_state, sort_key, metadata, created_at
                FROM content_archive_transitions
                WHERE archive_id = ?
                ORDER BY sort_key
                """,
                (row["id"],),
            ).fetchall()
        return _from_row(row, transitions)

    def _delete_for_link(self, link_id: str) -> bool:
        with self._lock, self._conn:
            cursor = self._conn.execute(
                "DELETE FROM content_archives WHERE link_id = ?", (link_id,)
            )
        return cursor.rowcount > 0


def _to_row(archive: Archive) -> dict[str, Any]:
    data = archive.model_dump(mode="json", exclude={"transitions"})
    data["metadata"] = json.dumps(data["metadata"]) if data["metadata"] is not None else None
    return data


def _from_row(row: sqlite3.Row, transitions: list[sqlite3.Row]) -> Archive:
    data = {column: row[column] for column in _COLUMNS}
    data["metadata"] = json.loads(data["metadata"]) if data["metadata"] else None
    data["transitions"] = [
        {
            "to_state": t["to_state"],
            "sort_key": t["sort_key"],
            "metadata": json.loads(t["metadata"]),
            "created_at": t["created_at"],
        }
        for t in transitions
    ]
    return Archive.model_validate(data)

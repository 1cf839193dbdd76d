from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Mapping

from .errors import StorageError
from .storage_schema import initialize_sqlite


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_dumps(value: Any) -> str:
    return json.dumps(
        value,
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


def _require_tag(tag: str) -> str:
    t = (tag or "").strip()
    if not t:
        raise ValueError("tag must be non-empty")
    return t


@dataclass(frozen=True)
class StoredRequest:
    key: str
    tag: str
    record: dict[str, Any]
    created_at: str


class SQLiteShowStore:
    """
    Keyed document store for show state.

    Holds the per-tag meta document (shows/meta/<tag>) and the append-only
    request queue (shows/requests/<tag>). A single connection is shared and
    guarded by a lock so enrichment workers can write from their threads.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row
        self._lock = Lock()

    @classmethod
    def open(cls, path: str | Path) -> "SQLiteShowStore":
        db_path = str(path)
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to open sqlite database: {db_path}: {e}") from e

        try:
            initialize_sqlite(conn)
        except Exception as e:
            conn.close()
            raise StorageError(f"Failed to initialize sqlite schema: {e}") from e

        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SQLiteShowStore":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def get_meta(self, tag: str) -> dict[str, Any] | None:
        t = _require_tag(tag)

        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT meta_json FROM show_meta WHERE tag = ?", (t,)
                ).fetchone()
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to read meta for {t}: {e}") from e

        if row is None:
            return None

        try:
            meta = json.loads(row["meta_json"] or "null")
        except ValueError:
            return None
        return meta if isinstance(meta, dict) else None

    def update_meta(self, tag: str, fields: Mapping[str, Any]) -> None:
        """Merge `fields` into the tag's meta document, creating it if needed."""
        t = _require_tag(tag)

        try:
            with self._lock, self._conn:
                row = self._conn.execute(
                    "SELECT meta_json FROM show_meta WHERE tag = ?", (t,)
                ).fetchone()

                current: dict[str, Any] = {}
                if row is not None:
                    try:
                        loaded = json.loads(row["meta_json"] or "null")
                    except ValueError:
                        loaded = None
                    if isinstance(loaded, dict):
                        current = loaded

                current.update(dict(fields))
                self._conn.execute(
                    """
                    INSERT INTO show_meta(tag, meta_json, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(tag) DO UPDATE SET
                      meta_json = excluded.meta_json,
                      updated_at = excluded.updated_at
                    """.strip(),
                    (t, _json_dumps(current), _utc_now_iso()),
                )
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to update meta for {t}: {e}") from e

    def push_request(self, tag: str, record: Mapping[str, Any]) -> str:
        """Append a record to the tag's request queue and return its generated key."""
        t = _require_tag(tag)
        key = uuid.uuid4().hex

        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO show_requests(request_key, tag, record_json, created_at)
                    VALUES (?, ?, ?, ?)
                    """.strip(),
                    (key, t, _json_dumps(dict(record)), _utc_now_iso()),
                )
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to append request for {t}: {e}") from e

        return key

    def list_requests(self, tag: str, *, limit: int | None = None) -> list[StoredRequest]:
        t = _require_tag(tag)
        if limit is not None and limit <= 0:
            return []

        sql = "SELECT request_key, tag, record_json, created_at FROM show_requests WHERE tag = ? ORDER BY id"
        params: tuple[Any, ...] = (t,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (t, int(limit))

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()

        out: list[StoredRequest] = []
        for r in rows:
            try:
                record = json.loads(r["record_json"] or "{}")
            except ValueError as e:
                raise StorageError(f"Stored request {r['request_key']} could not be parsed: {e}") from e
            out.append(
                StoredRequest(
                    key=str(r["request_key"]),
                    tag=str(r["tag"]),
                    record=record if isinstance(record, dict) else {},
                    created_at=str(r["created_at"]),
                )
            )
        return out

    def request_count(self, tag: str) -> int:
        t = _require_tag(tag)
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(1) AS n FROM show_requests WHERE tag = ?", (t,)
            ).fetchone()
        return int(row["n"]) if row is not None else 0

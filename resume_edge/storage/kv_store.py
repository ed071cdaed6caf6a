from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timedelta, timezone

from resume_edge.core.config import settings

_default_store: "KVStore | None" = None
_default_lock = threading.Lock()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _pattern_to_like(pattern: str) -> str:
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


class KVStore:
    """String key-value store on top of a single SQLite table.

    Keys follow a ``namespace:id`` convention (``resume:<uuid>``) so that
    ``list("resume:*")`` can enumerate one namespace.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_kv_records_created
                ON kv_records (created_at);
                """
            )
            self._conn = conn
            return conn

    def ping(self) -> None:
        conn = self._get_connection()
        with self._lock:
            conn.execute("SELECT 1").fetchone()

    def set(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("Key must not be empty.")
        conn = self._get_connection()
        now_iso = _utc_now().isoformat()
        with self._lock:
            conn.execute(
                """
                INSERT INTO kv_records (key, value, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now_iso, now_iso),
            )

    def get(self, key: str) -> str | None:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute("SELECT value FROM kv_records WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def delete(self, key: str) -> bool:
        conn = self._get_connection()
        with self._lock:
            cur = conn.execute("DELETE FROM kv_records WHERE key = ?", (key,))
        return bool(cur.rowcount)

    def list(self, pattern: str = "*", *, return_values: bool = False) -> list:
        conn = self._get_connection()
        like = _pattern_to_like(pattern)
        with self._lock:
            rows = conn.execute(
                """
                SELECT key, value
                FROM kv_records
                WHERE key LIKE ? ESCAPE '\\'
                ORDER BY created_at DESC, key ASC
                """,
                (like,),
            ).fetchall()
        if return_values:
            return [(row[0], row[1]) for row in rows]
        return [row[0] for row in rows]

    def flush(self) -> int:
        conn = self._get_connection()
        with self._lock:
            cur = conn.execute("DELETE FROM kv_records")
        return int(cur.rowcount or 0)

    def purge_older_than(self, days: int) -> int:
        if days <= 0:
            return 0
        conn = self._get_connection()
        cutoff = (_utc_now() - timedelta(days=days)).isoformat()
        with self._lock:
            cur = conn.execute("DELETE FROM kv_records WHERE created_at < ?", (cutoff,))
        return int(cur.rowcount or 0)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def get_kv_store() -> KVStore:
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = KVStore(settings.kv_db_path)
        return _default_store

"""
SQLite-backed key/value store.
"""
from __future__ import annotations
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from engine.errors import PersistenceError
from store.base import StateStore


class SqliteStore(StateStore):
    def __init__(self, path: str):
        super().__init__(path)
        self._lock = threading.Lock()
        try:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            # put() runs on worker threads; access is serialised by self._lock
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._init_db()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"cannot open {path}: {e}") from e

    # ------------------------------------------------------------------ #
    # Database schema
    # ------------------------------------------------------------------ #
    def _init_db(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------ #
    # Access
    # ------------------------------------------------------------------ #
    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            try:
                row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise PersistenceError(f"cannot read {key!r} from {self.path}: {e}") from e
        return bytes(row[0]) if row else None

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT OR REPLACE INTO kv(key, value) VALUES (?, ?)",
                    (key, sqlite3.Binary(value)),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"cannot write {key!r} to {self.path}: {e}") from e

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                self._conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"cannot delete {key!r} from {self.path}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()

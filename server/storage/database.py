"""
SQLite database shared by the credential store and the transcript sink.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, List, Sequence

from server.utils.logger import logger


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


class ChatDatabase:
    """Single SQLite connection serialized by a lock."""

    _SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        username TEXT PRIMARY KEY,
        password_hash TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS chat_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        sender_username TEXT NOT NULL,
        message TEXT NOT NULL
    );
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = threading.Lock()
        if db_path != ':memory:':
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.executescript(self._SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"cannot open database {db_path}: {e}") from e
        self._closed = False
        logger.info(f"Database ready at {db_path}")

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and commit; returns the affected row count."""
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
                return cursor.rowcount
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        """Run a read statement and return all rows."""
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._conn.close()

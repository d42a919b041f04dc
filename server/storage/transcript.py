"""
Transcript sink module.

Append-only record of every broadcast message: (timestamp, sender, message).
Entries are never mutated or deleted.
"""

import threading
from typing import List

from common.protocol_definitions import LogEntry
from server.storage.database import ChatDatabase


class TranscriptSink:
    """Interface consumed by the registry when broadcasting."""

    def append(self, timestamp: str, sender: str, message: str) -> None:
        raise NotImplementedError


class InMemoryTranscriptSink(TranscriptSink):
    """Keeps entries in a list; mainly for tests."""

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()

    def append(self, timestamp: str, sender: str, message: str) -> None:
        with self._lock:
            self._entries.append(LogEntry(timestamp, sender, message))

    def entries(self) -> List[LogEntry]:
        """Get a copy of all entries in append order."""
        with self._lock:
            return list(self._entries)


class SQLiteTranscriptSink(TranscriptSink):
    """Transcript persisted in the chat_logs table."""

    def __init__(self, db: ChatDatabase):
        self.db = db

    def append(self, timestamp: str, sender: str, message: str) -> None:
        self.db.execute(
            "INSERT INTO chat_logs (timestamp, sender_username, message) VALUES (?, ?, ?)",
            (timestamp, sender, message)
        )

"""
Credential store module.

Maps usernames to password digests. Usernames are unique: registration is
insert-if-absent, so a second registration of the same name fails and leaves
the first credential untouched. Only digests are ever stored or compared.
"""

import threading
from typing import Dict

from server.storage.database import ChatDatabase


class CredentialStore:
    """Interface consumed by the authentication handshake."""

    def register(self, username: str, password_hash: str) -> bool:
        """Insert a new user; True iff the username was not taken."""
        raise NotImplementedError

    def verify(self, username: str, password_hash: str) -> bool:
        """True iff the user exists and the stored digest matches."""
        raise NotImplementedError


class InMemoryCredentialStore(CredentialStore):
    """Process-local store, used by tests and throwaway servers."""

    def __init__(self):
        self._users: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, username: str, password_hash: str) -> bool:
        with self._lock:
            if username in self._users:
                return False
            self._users[username] = password_hash
            return True

    def verify(self, username: str, password_hash: str) -> bool:
        with self._lock:
            stored = self._users.get(username)
        return stored is not None and stored == password_hash


class SQLiteCredentialStore(CredentialStore):
    """Credentials persisted in the users table."""

    def __init__(self, db: ChatDatabase):
        self.db = db

    def register(self, username: str, password_hash: str) -> bool:
        rows = self.db.execute(
            "INSERT OR IGNORE INTO users (username, password_hash) VALUES (?, ?)",
            (username, password_hash)
        )
        return rows > 0

    def verify(self, username: str, password_hash: str) -> bool:
        rows = self.db.query(
            "SELECT password_hash FROM users WHERE username = ?",
            (username,)
        )
        return bool(rows) and rows[0][0] == password_hash

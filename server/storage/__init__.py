"""
Storage module for server-side persistence.

Handles:
- User credentials (register / verify)
- Chat transcript (append-only message log)
"""

from .database import ChatDatabase, StorageError
from .credential_store import CredentialStore, InMemoryCredentialStore, SQLiteCredentialStore
from .transcript import TranscriptSink, InMemoryTranscriptSink, SQLiteTranscriptSink

__all__ = [
    'ChatDatabase', 'StorageError',
    'CredentialStore', 'InMemoryCredentialStore', 'SQLiteCredentialStore',
    'TranscriptSink', 'InMemoryTranscriptSink', 'SQLiteTranscriptSink',
]

"""
Chat module for server-side messaging functionality.

Handles:
- Login / registration handshake
- Active session registry
- Message broadcasting and transcript logging
"""

from .session import AuthState, ConnectionClosed, Session, SocketConnection
from .auth import AuthHandshake
from .registry import Registry
from .chat_server import ChatServer, LoopExit

__all__ = [
    'AuthState', 'ConnectionClosed', 'Session', 'SocketConnection',
    'AuthHandshake', 'Registry', 'ChatServer', 'LoopExit',
]

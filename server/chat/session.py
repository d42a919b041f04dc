"""
Chat session module.

A Session is the server-side state of one client connection, from accept to
disconnect. It owns the connection's I/O and, once the handshake succeeds,
the username it is bound to. Sessions do not schedule themselves; the server
drives each one on its own thread.
"""

import socket
import struct
import sys
import threading
from enum import Enum
from typing import Optional, Tuple

from common.protocol_definitions import encode_line, decode_line


class AuthState(Enum):
    """Handshake states of a session."""
    CONNECTED = 'connected'
    AWAITING_ACTION = 'awaiting_action'
    AWAITING_USERNAME = 'awaiting_username'
    AWAITING_PASSWORD = 'awaiting_password'
    REGISTERING = 'registering'
    LOGGING_IN = 'logging_in'
    AUTHENTICATED = 'authenticated'
    REJECTED = 'rejected'
    DISCONNECTED = 'disconnected'

    @property
    def terminal(self) -> bool:
        return self in (AuthState.AUTHENTICATED, AuthState.REJECTED, AuthState.DISCONNECTED)


class ConnectionClosed(Exception):
    """The peer closed its end of the stream."""


def set_send_timeout(sock: socket.socket, seconds: float):
    """
    Bound how long a single send may block on a full socket buffer.

    Reads stay fully blocking; only writes to a peer that stopped reading
    fail with OSError once the timeout expires.
    """
    if sys.platform == 'win32':
        value = struct.pack('L', int(seconds * 1000))
    else:
        whole = int(seconds)
        value = struct.pack('ll', whole, int((seconds - whole) * 1_000_000))
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDTIMEO, value)


class SocketConnection:
    """Line-oriented wrapper around a connected TCP socket."""

    def __init__(self, sock: socket.socket, send_timeout: Optional[float] = None):
        self.sock = sock
        if send_timeout:
            set_send_timeout(sock, send_timeout)
        self._rfile = sock.makefile('rb')
        self._closed = False

    def read_line(self) -> Optional[str]:
        """Read one line; None at end-of-stream."""
        raw = self._rfile.readline()
        if not raw:
            return None
        return decode_line(raw)

    def write_line(self, text: str):
        self.sock.sendall(encode_line(text))

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already reset by the peer
            pass
        self._rfile.close()
        self.sock.close()


class Session:
    """Server-side state for one connected client."""

    def __init__(self, connection, address: Optional[Tuple] = None):
        self.connection = connection
        self.address = address
        self.state = AuthState.CONNECTED
        self._username: Optional[str] = None
        self._send_lock = threading.Lock()
        self._close_lock = threading.Lock()
        self._closed = False

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def closed(self) -> bool:
        return self._closed

    def bind_username(self, username: str):
        """Attach the authenticated username. It can only be set once."""
        if self._username is not None:
            raise ValueError(f"session already bound to {self._username!r}")
        self._username = username

    def send(self, line: str):
        """
        Send one line to the client.

        Serialized per session so lines from concurrent broadcasters are
        never interleaved. Raises OSError if the connection is gone. A failed
        write closes the session, which ends its own message loop.
        """
        with self._send_lock:
            if self._closed:
                raise ConnectionResetError("session is closed")
            try:
                self.connection.write_line(line)
            except OSError:
                self.close()
                raise

    def read_line(self) -> str:
        """Read one line from the client; raises ConnectionClosed at EOF."""
        line = self.connection.read_line()
        if line is None:
            raise ConnectionClosed(f"{self.address} closed the connection")
        return line

    def close(self):
        # Must not wait on _send_lock
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self.connection.close()

    def __repr__(self):
        return f"<Session {self._username or '-'} {self.address} {self.state.name}>"

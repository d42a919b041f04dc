"""
Chat server module.

This module handles the TCP accept loop and the per-connection lifecycle:
handshake, admission to the registry, message loop, and cleanup. Every
connection runs on its own thread for its whole lifetime.
"""

import socket
import threading
from enum import Enum
from typing import Optional, Tuple

from common.constants import EXIT_COMMAND, Prompts
from server.chat.auth import AuthHandshake
from server.chat.registry import Registry
from server.chat.session import AuthState, ConnectionClosed, Session, SocketConnection
from server.storage.credential_store import CredentialStore
from server.storage.transcript import TranscriptSink
from server.utils.config import ServerConfig
from server.utils.logger import logger


class LoopExit(Enum):
    """Why a session's message loop ended."""
    QUIT = 'quit'
    EOF = 'eof'
    ERROR = 'error'


class ChatServer:
    """Server-side chat functionality."""

    def __init__(self, config: ServerConfig, credential_store: CredentialStore,
                 transcript: Optional[TranscriptSink] = None, registry: Optional[Registry] = None):
        self.config = config
        self.registry = registry if registry is not None else Registry(transcript)
        self.handshake = AuthHandshake(credential_store)

        self.server_socket: Optional[socket.socket] = None
        self.running = False
        self.threads = []
        self.threads_lock = threading.Lock()

        # Every accepted connection, including those still in the handshake
        self.sessions = set()
        self.sessions_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); port is real even when configured as 0."""
        return self.server_socket.getsockname()[:2]

    def start(self):
        """Bind and listen. Raises OSError if the port cannot be bound."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError:
            sock.close()
            raise

        self.server_socket = sock
        self.running = True
        logger.info(f"Chat server listening on {self.address[0]}:{self.address[1]}")

    def serve_forever(self):
        """Accept connections until shutdown() is called."""
        if self.server_socket is None:
            self.start()

        while self.running:
            try:
                conn, addr = self.server_socket.accept()
            except OSError as e:
                if not self.running:
                    break
                logger.log_error("accept", e)
                raise

            thread = threading.Thread(
                target=self.handle_connection,
                args=(conn, addr),
                name=f"session-{addr[0]}:{addr[1]}",
                daemon=True
            )
            with self.threads_lock:
                self.threads = [t for t in self.threads if t.is_alive()]
                self.threads.append(thread)
            thread.start()

    def handle_connection(self, conn: socket.socket, addr: Tuple):
        """Drive one connection from handshake to cleanup."""
        logger.log_connection(addr)
        session = Session(SocketConnection(conn, self.config.send_timeout), addr)
        with self.sessions_lock:
            if not self.running:
                session.close()
                return
            self.sessions.add(session)
        try:
            self.serve_session(session)
        finally:
            with self.sessions_lock:
                self.sessions.discard(session)

    def serve_session(self, session: Session) -> Optional[LoopExit]:
        """
        Authenticate a session and, on success, run its message loop.

        The connection is always closed and the session removed from the
        registry exactly once on the way out. Returns how the message loop
        ended, or None if the session never got past the handshake.
        """
        outcome = None
        try:
            state = self.handshake.run(session)
            if state is not AuthState.AUTHENTICATED:
                return None

            self.registry.add(session)
            session.send(Prompts.CHAT_INSTRUCTIONS)
            outcome = self.run_message_loop(session)
        except Exception as e:
            logger.log_error(f"session {session.address}", e)
            outcome = LoopExit.ERROR
        finally:
            session.close()
            if self.registry.remove(session):
                logger.log_disconnect(session.username, outcome.value if outcome else 'closed')
        return outcome

    def run_message_loop(self, session: Session) -> LoopExit:
        """Relay each line from the session until it quits or the stream ends."""
        while True:
            try:
                line = session.read_line()
            except ConnectionClosed:
                return LoopExit.EOF
            except (OSError, ValueError) as e:
                if not session.closed:
                    logger.error(f"Error with {session.username}: {e}")
                return LoopExit.ERROR

            if line.lower() == EXIT_COMMAND:
                return LoopExit.QUIT
            self.registry.broadcast(session, line)

    def shutdown(self):
        """Stop accepting and disconnect every live session, authenticated or not."""
        with self.sessions_lock:
            self.running = False
            sessions = list(self.sessions)
        if self.server_socket is not None:
            # close() alone does not wake a thread blocked in accept() on Linux
            try:
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()

        for session in sessions:
            session.close()

        with self.threads_lock:
            threads = list(self.threads)
        for thread in threads:
            thread.join(timeout=1.0)
        logger.info("Chat server stopped")

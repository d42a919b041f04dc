"""
Authentication handshake module.

Drives a Session from CONNECTED to one of the terminal states:

    CONNECTED -> AWAITING_ACTION -> AWAITING_USERNAME -> AWAITING_PASSWORD
              -> REGISTERING | LOGGING_IN -> AUTHENTICATED

with REJECTED (bad input or bad credentials) and DISCONNECTED (stream closed)
reachable from any read. Each call to step() performs exactly one transition,
so every edge can be exercised with a scripted connection.
"""

from typing import Callable, Dict, Optional

from common.constants import AuthActions, Prompts
from common.protocol_definitions import hash_password
from server.chat.session import AuthState, ConnectionClosed, Session
from server.storage.credential_store import CredentialStore
from server.storage.database import StorageError
from server.utils.logger import logger


class HandshakeContext:
    """Values collected while a handshake is in progress."""

    def __init__(self):
        self.action: Optional[str] = None
        self.username: Optional[str] = None
        self.password_hash: Optional[str] = None


class AuthHandshake:
    """Login/register state machine for one session at a time."""

    def __init__(self, credential_store: CredentialStore):
        self.credential_store = credential_store
        self._handlers: Dict[AuthState, Callable[[Session, HandshakeContext], AuthState]] = {
            AuthState.CONNECTED: self._on_connected,
            AuthState.AWAITING_ACTION: self._on_awaiting_action,
            AuthState.AWAITING_USERNAME: self._on_awaiting_username,
            AuthState.AWAITING_PASSWORD: self._on_awaiting_password,
            AuthState.REGISTERING: self._on_registering,
            AuthState.LOGGING_IN: self._on_logging_in,
        }

    def run(self, session: Session) -> AuthState:
        """Step the session until it reaches a terminal state."""
        context = HandshakeContext()
        while not session.state.terminal:
            self.step(session, context)
        return session.state

    def step(self, session: Session, context: HandshakeContext) -> AuthState:
        """Perform one transition and record the new state on the session."""
        current = session.state
        if current.terminal:
            return current

        try:
            new_state = self._handlers[current](session, context)
        except ConnectionClosed:
            logger.log_auth_failure(session.address, f"stream closed in {current.name}")
            new_state = AuthState.DISCONNECTED
        except OSError as e:
            logger.log_auth_failure(session.address, f"connection error in {current.name}: {e}")
            new_state = AuthState.DISCONNECTED

        logger.debug(f"Handshake {session.address}: {current.name} -> {new_state.name}")
        session.state = new_state
        return new_state

    def _on_connected(self, session: Session, context: HandshakeContext) -> AuthState:
        session.send(Prompts.ACTION)
        return AuthState.AWAITING_ACTION

    def _on_awaiting_action(self, session: Session, context: HandshakeContext) -> AuthState:
        action = session.read_line().lower()
        if action not in (AuthActions.LOGIN, AuthActions.REGISTER):
            logger.log_auth_failure(session.address, f"invalid action {action!r}")
            session.send(Prompts.INVALID_ACTION)
            return AuthState.REJECTED

        context.action = action
        session.send(Prompts.USERNAME)
        return AuthState.AWAITING_USERNAME

    def _on_awaiting_username(self, session: Session, context: HandshakeContext) -> AuthState:
        context.username = session.read_line()
        session.send(Prompts.PASSWORD)
        return AuthState.AWAITING_PASSWORD

    def _on_awaiting_password(self, session: Session, context: HandshakeContext) -> AuthState:
        context.password_hash = hash_password(session.read_line())
        if context.action == AuthActions.REGISTER:
            return AuthState.REGISTERING
        return AuthState.LOGGING_IN

    def _on_registering(self, session: Session, context: HandshakeContext) -> AuthState:
        try:
            created = self.credential_store.register(context.username, context.password_hash)
        except StorageError as e:
            logger.log_error("register", e)
            created = False

        if not created:
            logger.log_auth_failure(session.address, f"registration refused for {context.username}")
            session.send(Prompts.REGISTER_FAILED)
            return AuthState.REJECTED

        session.bind_username(context.username)
        session.send(Prompts.REGISTER_OK)
        logger.log_register(context.username, session.address)
        return AuthState.AUTHENTICATED

    def _on_logging_in(self, session: Session, context: HandshakeContext) -> AuthState:
        try:
            verified = self.credential_store.verify(context.username, context.password_hash)
        except StorageError as e:
            logger.log_error("verify", e)
            verified = False

        if not verified:
            logger.log_auth_failure(session.address, f"bad credentials for {context.username}")
            session.send(Prompts.LOGIN_FAILED)
            return AuthState.REJECTED

        session.bind_username(context.username)
        session.send(Prompts.LOGIN_OK.format(username=context.username))
        logger.log_login(context.username, session.address)
        return AuthState.AUTHENTICATED

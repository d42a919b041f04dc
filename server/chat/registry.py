"""
Session registry module.

Holds the set of authenticated sessions that receive broadcasts. The registry
tracks membership only; each session's lifecycle belongs to the thread that
drives it.
"""

import threading
from datetime import datetime
from typing import List, Optional

from common.protocol_definitions import format_chat_line
from server.chat.session import Session
from server.storage.transcript import TranscriptSink
from server.utils.logger import logger


class Registry:
    """Concurrency-safe set of active sessions with fan-out broadcast."""

    def __init__(self, transcript: Optional[TranscriptSink] = None):
        self.transcript = transcript
        self._members: List[Session] = []
        self.lock = threading.Lock()  # Protect membership

    def add(self, session: Session):
        """Admit an authenticated session. Adding a member twice is a no-op."""
        if not session.authenticated:
            raise ValueError(f"cannot register unauthenticated session {session!r}")
        with self.lock:
            if any(member is session for member in self._members):
                return
            self._members.append(session)
        logger.info(f"{session.username} joined ({len(self)} online)")

    def remove(self, session: Session) -> bool:
        """Drop a session if present. Returns True only for the call that removed it."""
        with self.lock:
            for index, member in enumerate(self._members):
                if member is session:
                    del self._members[index]
                    return True
        return False

    def members(self) -> List[Session]:
        """Get a snapshot of the current members."""
        with self.lock:
            return list(self._members)

    def usernames(self) -> List[str]:
        return [member.username for member in self.members()]

    def broadcast(self, sender: Session, message: str) -> int:
        """
        Deliver "<sender>: <message>" to every member except the sender.

        The message is appended to the transcript first; a transcript failure
        is logged and does not stop delivery. Delivery works on a snapshot
        taken under the lock, so members joining or leaving meanwhile neither
        break the loop nor receive the line twice. A recipient whose send
        fails is skipped and left for its own session to clean up.

        Returns the number of members the line was delivered to.
        """
        line = format_chat_line(sender.username, message)
        logger.log_chat(line)

        if self.transcript is not None:
            try:
                self.transcript.append(datetime.now().isoformat(), sender.username, message)
            except Exception as e:
                logger.log_error("transcript append", e)

        delivered = 0
        for member in self.members():
            if member is sender:
                continue
            try:
                member.send(line)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to deliver to {member.username}: {e}")
        return delivered

    def __len__(self):
        with self.lock:
            return len(self._members)

    def __contains__(self, session):
        with self.lock:
            return any(member is session for member in self._members)

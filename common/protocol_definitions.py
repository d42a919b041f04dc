"""
Protocol definitions for the line chat service.

This module defines the line format and data structures used in communication
between client and server components. Every message on the wire is a single
line of UTF-8 text terminated by a newline; there is no other framing.
"""

import hashlib
from dataclasses import dataclass

from common.constants import ENCODING, LINE_TERMINATOR


@dataclass(frozen=True)
class LogEntry:
    """Transcript entry structure."""
    timestamp: str
    sender: str
    message: str


def hash_password(password: str) -> str:
    """
    Return the SHA-256 hex digest of a password.

    The digest is unsalted so that the same password always produces the
    same 64 character lowercase string, for registration and login alike.
    """
    if isinstance(password, str):
        password = password.encode(ENCODING)
    return hashlib.sha256(password).hexdigest()


def format_chat_line(sender: str, message: str) -> str:
    """Create the line delivered to other participants."""
    return f"{sender}: {message}"


def encode_line(text: str) -> bytes:
    """Encode a line of text for the wire."""
    return (text + LINE_TERMINATOR).encode(ENCODING)


def decode_line(raw: bytes) -> str:
    """Decode a raw line, dropping its terminator (LF or CRLF)."""
    return raw.decode(ENCODING, errors='replace').rstrip('\r\n')

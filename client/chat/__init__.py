"""
Chat module for client-side messaging functionality.

Handles:
- Forwarding typed lines to the server
- Printing lines received from the server
"""

from .chat_client import ChatClient

__all__ = ['ChatClient']

"""
Chat client module.

Terminal front-end: one thread prints every line the server sends while the
calling thread forwards lines typed by the user.
"""

import socket
import sys
import threading
from typing import Optional, TextIO

from common.constants import EXIT_COMMAND
from common.protocol_definitions import encode_line, decode_line
from client.utils.config import ClientConfig
from client.utils.logger import logger


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, config: Optional[ClientConfig] = None, output: Optional[TextIO] = None):
        self.config = config or ClientConfig()
        self.output = output or sys.stdout
        self.sock: Optional[socket.socket] = None
        self.running = False
        self.receive_thread: Optional[threading.Thread] = None

    def connect(self) -> bool:
        """Open the connection and start printing incoming lines."""
        try:
            self.sock = socket.create_connection(
                (self.config.host, self.config.port),
                timeout=self.config.connect_timeout
            )
            self.sock.settimeout(None)
        except OSError as e:
            logger.log_connection(self.config.host, self.config.port, False)
            self._print(f"Error connecting to server: {e}")
            return False

        logger.log_connection(self.config.host, self.config.port, True)
        self._print("Connected to chat server.")
        self.running = True
        self.receive_thread = threading.Thread(target=self._receive_loop, name="chat-receiver", daemon=True)
        self.receive_thread.start()
        return True

    def _receive_loop(self):
        """Print server lines until the connection ends."""
        try:
            with self.sock.makefile('rb') as rfile:
                for raw in rfile:
                    self._print(decode_line(raw))
        except (OSError, ValueError) as e:
            if self.running:
                self._print(f"Connection lost: {e}")
        finally:
            self.running = False

    def send_line(self, text: str) -> bool:
        """Send one line to the server."""
        if not self.sock:
            logger.error("Not connected to server")
            return False
        try:
            self.sock.sendall(encode_line(text))
            return True
        except OSError as e:
            logger.log_error("send", e)
            return False

    def run(self, input_stream: Optional[TextIO] = None):
        """Forward lines from input_stream until EOF, 'exit' or a send failure."""
        input_stream = input_stream or sys.stdin
        try:
            for raw in input_stream:
                line = raw.rstrip('\r\n')
                if not self.send_line(line):
                    break
                if line.lower() == EXIT_COMMAND:
                    break
        finally:
            self.close()

    def wait(self, timeout: Optional[float] = None):
        """Wait for the receiver to see the end of the stream."""
        if self.receive_thread is not None:
            self.receive_thread.join(timeout)

    def close(self):
        self.running = False
        if self.sock is not None:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.sock.close()
            self.sock = None
            self._print("Disconnected.")

    def _print(self, text: str):
        print(text, file=self.output, flush=True)

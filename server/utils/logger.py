"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from common.constants import SERVER_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger('chat_server')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        self.formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(self.formatter)
        self.logger.addHandler(console_handler)

        self.log_path: Optional[Path] = None
        if logs_dir:
            self.enable_file_logging(logs_dir)

    def set_level(self, log_level: int):
        """Change the level of the logger and all of its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def enable_file_logging(self, logs_dir: str):
        """Also write log records to <logs_dir>/server.log."""
        logs_path = Path(logs_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        self.log_path = logs_path / SERVER_LOG_FILE

        file_handler = logging.FileHandler(self.log_path, encoding='utf-8')
        file_handler.setLevel(self.logger.level)
        file_handler.setFormatter(self.formatter)
        self.logger.addHandler(file_handler)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr: Optional[Tuple]):
        """Log client connection."""
        self.info(f"New connection from {addr}")

    def log_register(self, username: str, addr: Optional[Tuple]):
        """Log successful registration."""
        self.info(f"New user registered: {username} ({addr})")

    def log_login(self, username: str, addr: Optional[Tuple]):
        """Log user login."""
        self.info(f"User logged in: {username} ({addr})")

    def log_auth_failure(self, addr: Optional[Tuple], reason: str):
        """Log a rejected or abandoned handshake."""
        self.warning(f"Authentication failed for {addr}: {reason}")

    def log_chat(self, line: str):
        """Log chat message."""
        self.info(line)

    def log_disconnect(self, username: Optional[str], reason: str):
        """Log user disconnect."""
        self.info(f"{username} disconnected ({reason}).")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ServerLogger()

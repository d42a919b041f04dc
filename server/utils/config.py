"""
Server configuration module.

This module handles server-side configuration settings.
"""

import logging

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_DB_PATH, LISTEN_BACKLOG, SEND_TIMEOUT


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 db_path: str = DEFAULT_DB_PATH, logs_dir: str = None,
                 log_level: int = logging.INFO, send_timeout: float = SEND_TIMEOUT):
        self.host = host
        self.port = port
        self.backlog = LISTEN_BACKLOG

        # A client that stops reading is disconnected after this many seconds
        self.send_timeout = send_timeout

        # Storage configuration
        self.db_path = db_path

        # Logging configuration; None keeps logging on the console only
        self.logs_dir = logs_dir
        self.log_level = log_level

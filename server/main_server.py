#!/usr/bin/env python3
"""
Line Chat Server - Main Entry Point

This is the main entry point for the server application.
It wires the SQLite credential store and transcript into the chat server.
"""

import argparse
import logging
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_DB_PATH, LOG_DIR
from server.chat.chat_server import ChatServer
from server.storage import ChatDatabase, SQLiteCredentialStore, SQLiteTranscriptSink, StorageError
from server.utils.config import ServerConfig
from server.utils.logger import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Line Chat Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'TCP port clients connect to (default: {DEFAULT_PORT})')
    parser.add_argument('--db', type=str, default=DEFAULT_DB_PATH,
                        help=f'SQLite database for users and chat logs (default: {DEFAULT_DB_PATH})')
    parser.add_argument('--logs-dir', type=str, nargs='?', const=LOG_DIR, default=None,
                        help=f'Also write server.log into this directory (default when given bare: {LOG_DIR})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        db_path=args.db,
        logs_dir=args.logs_dir,
        log_level=logging.DEBUG if args.debug else logging.INFO
    )
    logger.set_level(config.log_level)
    if config.logs_dir:
        logger.enable_file_logging(config.logs_dir)

    try:
        db = ChatDatabase(config.db_path)
    except StorageError as e:
        logger.error(f"Error initializing database: {e}")
        return 1

    server = ChatServer(config, SQLiteCredentialStore(db), SQLiteTranscriptSink(db))
    try:
        server.start()
    except OSError as e:
        logger.error(f"Server failed to bind {config.host}:{config.port}: {e}")
        db.close()
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.log_error("server", e)
        return 1
    finally:
        server.shutdown()
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

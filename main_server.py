#!/usr/bin/env python3
"""
Line Chat Server - Main Entry Point

Multi-user text chat over TCP:
- Login / registration against a SQLite user table
- Every line relayed to all other connected users
- Chat transcript persisted alongside the users

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: 0.0.0.0)
    --port PORT           TCP port (default: 12345)
    --db PATH             SQLite database file (default: chat.db)
    --logs-dir [DIR]      Also log to DIR/server.log (default DIR: logs)
    --debug               Verbose logging
"""

if __name__ == "__main__":
    import sys

    from server.main_server import main

    sys.exit(main())

#!/usr/bin/env python3
"""
Line Chat Client - Main Entry Point

Terminal client: answers the server's login/register prompts and then
relays typed lines. Type 'exit' to leave.

Usage:
    python main_client.py [--host HOST] [--port PORT]
"""

if __name__ == "__main__":
    import sys

    from client.main_client import main

    sys.exit(main())

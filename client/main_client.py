#!/usr/bin/env python3
"""
Line Chat Client - Main Entry Point

This is the main entry point for the terminal client.
"""

import argparse
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.chat.chat_client import ChatClient
from client.utils.config import ClientConfig
from common.constants import DEFAULT_HOST, DEFAULT_PORT


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Line Chat Client')
    parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                        help=f'Server address (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    args = parser.parse_args(argv)

    client = ChatClient(ClientConfig(args.host, args.port))
    if not client.connect():
        return 1

    try:
        client.run(sys.stdin)
    except KeyboardInterrupt:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

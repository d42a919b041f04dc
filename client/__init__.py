"""
Client package for the line chat service.

This package contains the terminal client:
- Connection to the chat server
- Concurrent reading of server lines and user input
- Configuration and utilities
"""

"""
Server package for the line chat service.

This package contains all server-side functionality including:
- Connection handling and authentication
- Message broadcasting
- Credential and transcript storage
- Configuration and utilities
"""

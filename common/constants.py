"""
Shared constants for the line chat service.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 12345
LISTEN_BACKLOG = 50
SEND_TIMEOUT = 10.0  # seconds a write to one client may block

# Wire format
ENCODING = 'utf-8'
LINE_TERMINATOR = '\n'

# Storage
DEFAULT_DB_PATH = 'chat.db'

# Logging
LOG_DIR = 'logs'
SERVER_LOG_FILE = 'server.log'

# Chat commands
EXIT_COMMAND = 'exit'


class AuthActions:
    LOGIN = 'login'
    REGISTER = 'register'


class Prompts:
    """Lines the server sends during the handshake and after admission."""
    ACTION = "Enter 'login' or 'register':"
    USERNAME = "Enter username:"
    PASSWORD = "Enter password:"

    INVALID_ACTION = "Invalid action. Disconnecting."

    REGISTER_OK = "Registration successful! You can now chat."
    REGISTER_FAILED = "Registration failed: Username may already exist."
    LOGIN_OK = "Login successful! Welcome back, {username}."
    LOGIN_FAILED = "Login failed: Invalid username or password."

    CHAT_INSTRUCTIONS = "Type your messages below. Type 'exit' to quit."

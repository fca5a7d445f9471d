"""Config model, dynamic strings, variables, desktop file lookup, IPC messages and clock formatting for a status bar."""

__version__ = "0.1.0"
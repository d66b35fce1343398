"""
FileDB — JSON documents on disk behind a small HTTP interface.

Each document is one ``<name>.json`` file in the storage directory. Every
store operation appends one line to the audit log.
"""

__version__ = "1.0.0"
__all__ = ["engine", "documents", "server", "cli"]

"""
FileDB Audit Log — Append-only, line-oriented record of store operations.

Line format (one per operation, success or failure):

    SUCCESS - scott.json: created 1563221866619
    ERROR - user.json does not exist 1563221866702

The timestamp is Unix epoch milliseconds and never decreases in append order.
Appends are serialized by a lock so concurrent writers cannot interleave
partial lines. A failing append is reported through the diagnostics logger
and never raised to the caller.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger("filedb.engine.audit")

SUCCESS = "SUCCESS"
ERROR = "ERROR"


class AuditRecord:
    """One immutable audit line."""

    __slots__ = ("outcome", "message", "timestamp")

    def __init__(self, outcome: str, message: str, timestamp: int):
        self.outcome = outcome
        self.message = message
        self.timestamp = timestamp

    @property
    def is_error(self) -> bool:
        return self.outcome == ERROR

    def to_line(self) -> str:
        # Embedded newlines would split one record across two lines
        message = self.message.replace("\r", " ").replace("\n", " ")
        return f"{self.outcome} - {message} {self.timestamp}\n"

    @classmethod
    def from_line(cls, line: str) -> Optional["AuditRecord"]:
        """Parse a log line; returns None for lines not in audit format."""
        line = line.rstrip("\n")
        outcome, sep, rest = line.partition(" - ")
        if not sep or outcome not in (SUCCESS, ERROR):
            return None
        message, _, ts = rest.rpartition(" ")
        try:
            timestamp = int(ts)
        except ValueError:
            return None
        return cls(outcome, message, timestamp)

    def __repr__(self) -> str:
        return f"AuditRecord({self.outcome!r}, {self.message!r}, {self.timestamp})"


class AuditLog:
    """
    Single owned append-only log file.

    Thread-safe: the lock covers the timestamp assignment and the write, so
    file order and timestamp order agree.
    """

    def __init__(self, log_file: Path | str):
        self._path = Path(log_file)
        self._lock = threading.Lock()
        self._last_timestamp = 0

    @property
    def path(self) -> Path:
        return self._path

    def _next_timestamp(self) -> int:
        now = time.time_ns() // 1_000_000
        self._last_timestamp = max(now, self._last_timestamp)
        return self._last_timestamp

    def append(self, message: str, is_error: bool = False) -> AuditRecord:
        """Append one line. Never raises on I/O failure."""
        with self._lock:
            record = AuditRecord(ERROR if is_error else SUCCESS, str(message), self._next_timestamp())
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(record.to_line())
            except OSError as e:
                logger.error(f"Audit append to {self._path} failed: {e}")
        return record

    def records(self) -> List[AuditRecord]:
        """Parse the whole log file. Missing file reads as empty."""
        with self._lock:
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    lines = f.readlines()
            except FileNotFoundError:
                return []
        parsed = (AuditRecord.from_line(line) for line in lines)
        return [r for r in parsed if r is not None]

    def line_count(self) -> int:
        with self._lock:
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    return sum(1 for _ in f)
            except FileNotFoundError:
                return 0

    def truncate(self) -> None:
        """Empty the log file (used by the store's reset)."""
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text("", encoding="utf-8")

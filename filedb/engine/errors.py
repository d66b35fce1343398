"""
FileDB Error Hierarchy — Structured exceptions for store and HTTP failures.

Every error carries a human-readable message (rendered verbatim as the HTTP
response body) and an optional status code used by the dispatcher when the
route remaps failures to HTTP statuses.

Hierarchy:
    FileDBError
    ├── InvalidArgumentError — Missing or malformed parameter (400)
    ├── ConflictError        — Document already exists (409)
    ├── NotFoundError        — Document does not exist (404)
    ├── StorageIOError       — Read/write/parse failure other than absence (500)
    └── ConfigError          — Invalid filedb.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class FileDBError(Exception):
    """
    Base error for all FileDB failures.
    All context is serializable to JSON for diagnostics logging.
    """

    default_status: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None, **context: Any):
        self.message = message
        self.status_code: Optional[int] = (
            status_code if status_code is not None else self.default_status
        )
        self.document: Optional[str] = context.get("document")
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            "document": self.document,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("document", "operation")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.document:
            parts.append(f"document={self.document}")
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        return " | ".join(parts)


class InvalidArgumentError(FileDBError):
    """
    A required parameter is missing or malformed (e.g. a file name without
    the required extension). Raised before storage is touched.
    """

    default_status = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **context: Any):
        self.parameter: Optional[str] = context.get("parameter")
        super().__init__(message, status_code, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["parameter"] = self.parameter
        return d


class ConflictError(FileDBError):
    """Target document already exists where absence was required."""

    default_status = 409


class NotFoundError(FileDBError):
    """Target document does not exist where presence was required."""

    default_status = 404


class StorageIOError(FileDBError):
    """
    Underlying storage failed for a reason other than existence:
    permissions, unparsable JSON, or a document that is not a JSON object.
    """

    default_status = 500


class ConfigError(FileDBError):
    """Configuration error — invalid filedb.yaml."""
    pass

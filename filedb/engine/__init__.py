"""FileDB Engine — Configuration, errors, audit log and diagnostics logging."""

from filedb.engine.audit import AuditLog, AuditRecord  # noqa: F401
from filedb.engine.config import FileDBConfig, get_config, load_config  # noqa: F401
from filedb.engine.errors import FileDBError  # noqa: F401

__all__ = [
    "AuditLog",
    "AuditRecord",
    "FileDBConfig",
    "FileDBError",
    "get_config",
    "load_config",
]

"""FileDB diagnostics logging — stdlib logging wired from filedb.yaml.

The audit trail lives in filedb.engine.audit and never goes through here.
"""

from __future__ import annotations

import logging
from typing import Optional

from filedb.engine.config import LoggingConfig

ROOT_LOGGER = "filedb"

_handler: Optional[logging.Handler] = None


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Attach a single stream handler to the ``filedb`` logger. Idempotent."""
    global _handler
    config = config or LoggingConfig()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(config.level)

    if _handler is None:
        _handler = logging.StreamHandler()
        root.addHandler(_handler)
    _handler.setFormatter(logging.Formatter(config.format))
    _handler.setLevel(config.level)
    return root


def reset_logging() -> None:
    """Detach the handler installed by configure_logging()."""
    global _handler
    if _handler is not None:
        logging.getLogger(ROOT_LOGGER).removeHandler(_handler)
        _handler = None

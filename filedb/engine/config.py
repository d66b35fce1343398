"""
FileDB Configuration — Load and validate filedb.yaml at startup.

Usage:
    from filedb.engine.config import load_config, get_config

Relative paths in the file (storage.data_dir, storage.merge_file,
audit.log_file) resolve against the directory holding filedb.yaml.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from filedb.engine.errors import ConfigError

CONFIG_FILENAME = "filedb.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for filedb.yaml
# ---------------------------------------------------------------------------

class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    owner: str = "FileDB"

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v


class StorageConfig(BaseModel):
    data_dir: str = "db"
    extension: str = ".json"
    merge_file: str = "merge.json"
    # File names containing any of these substrings are skipped by merge/list
    exclude: List[str] = Field(default_factory=lambda: ["package"])
    lock_documents: bool = True
    indent: Optional[int] = None

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"extension must look like '.json', got '{v}'")
        return v


class AuditConfig(BaseModel):
    log_file: str = "log.txt"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        name = v.upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown logging level '{v}'")
        return name


class FileDBConfig(BaseModel):
    """Root model for filedb.yaml."""
    server: ServerConfig = ServerConfig()
    storage: StorageConfig = StorageConfig()
    audit: AuditConfig = AuditConfig()
    logging: LoggingConfig = LoggingConfig()

    root: str = "."

    def resolve(self, relative: str) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return Path(self.root) / path

    @property
    def data_path(self) -> Path:
        return self.resolve(self.storage.data_dir)

    @property
    def merge_path(self) -> Path:
        return self.resolve(self.storage.merge_file)

    @property
    def log_path(self) -> Path:
        return self.resolve(self.audit.log_file)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[FileDBConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for filedb.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    return _find_project_root()


def load_config(config_path: Optional[str] = None) -> FileDBConfig:
    """
    Load and validate filedb.yaml.

    Args:
        config_path: Explicit path to filedb.yaml. If None, auto-discovers.

    Returns:
        Validated FileDBConfig instance. Defaults are used (rooted at the
        discovered project root) when no file exists.

    Raises:
        ConfigError: the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _config = FileDBConfig(root=str(path.parent))
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level", path=str(path))

    config_data = {
        "server": raw.get("server") or {},
        "storage": raw.get("storage") or {},
        "audit": raw.get("audit") or {},
        "logging": raw.get("logging") or {},
        "root": str(path.parent),
    }

    try:
        _config = FileDBConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}: {e.error_count()} error(s)",
            path=str(path),
            validation_errors=e.errors(),
        ) from e
    return _config


def get_config() -> FileDBConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: FileDBConfig) -> None:
    """Install an already-built config (used by the CLI and tests)."""
    global _config
    _config = config

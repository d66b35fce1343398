"""
FileDB Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Environment setup — every test gets its own project tree
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Reset global singletons between tests."""
    import filedb.engine.config as cfg_mod
    from filedb.engine.logging import reset_logging

    cfg_mod._config = None
    yield
    cfg_mod._config = None
    reset_logging()


@pytest.fixture
def project_root(tmp_path):
    """
    Create a minimal FileDB project tree with filedb.yaml and an empty db/.
    Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()

    (root / "filedb.yaml").write_text(
        "server:\n"
        "  port: 5050\n"
        "  owner: Test Owner\n"
        "storage:\n"
        "  data_dir: db\n"
        "  merge_file: merge.json\n"
        "audit:\n"
        "  log_file: log.txt\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    (root / "db").mkdir()
    return root


@pytest.fixture
def config(project_root):
    from filedb.engine.config import load_config

    return load_config(str(project_root / "filedb.yaml"))


@pytest.fixture
def audit(tmp_path):
    from filedb.engine.audit import AuditLog

    return AuditLog(tmp_path / "log.txt")


@pytest.fixture
def store(config):
    """A DocumentStore rooted in the temp project."""
    from filedb.documents.service import DocumentStore

    return DocumentStore.from_config(config)


@pytest.fixture
def write_doc(store):
    """Place a raw document on disk, bypassing the store and its audit log."""

    def _write(name: str, text: str) -> Path:
        path = store.data_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write

"""Unit tests for filedb.engine.audit — AuditRecord, AuditLog."""

import threading
import pytest
from unittest.mock import patch

from filedb.engine.audit import ERROR, SUCCESS, AuditLog, AuditRecord


class TestAuditRecord:
    def test_to_line(self):
        record = AuditRecord(SUCCESS, "user.json: created", 1563221866619)
        assert record.to_line() == "SUCCESS - user.json: created 1563221866619\n"

    def test_error_line(self):
        record = AuditRecord(ERROR, "user.json does not exist", 5)
        assert record.to_line().startswith("ERROR - ")
        assert record.is_error

    def test_newlines_flattened(self):
        record = AuditRecord(SUCCESS, '{\n  "a": 1\n}', 7)
        assert record.to_line().count("\n") == 1

    def test_from_line(self):
        record = AuditRecord.from_line("ERROR - email invalid key on scott.json 1563221866619\n")
        assert record.outcome == ERROR
        assert record.message == "email invalid key on scott.json"
        assert record.timestamp == 1563221866619

    def test_from_line_rejects_garbage(self):
        assert AuditRecord.from_line("hello world") is None
        assert AuditRecord.from_line("INFO - something 12") is None
        assert AuditRecord.from_line("SUCCESS - no timestamp here") is None


class TestAuditLog:
    def test_append_creates_file(self, audit):
        audit.append("scott.json: created")
        assert audit.path.exists()
        lines = audit.path.read_text().splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("SUCCESS - scott.json: created ")

    def test_error_flag(self, audit):
        record = audit.append("post.json does not exist", is_error=True)
        assert record.outcome == ERROR
        assert audit.records()[0].is_error

    def test_timestamps_non_decreasing(self, audit):
        for i in range(20):
            audit.append(f"op {i}")
        stamps = [r.timestamp for r in audit.records()]
        assert stamps == sorted(stamps)

    def test_clock_going_backwards(self, audit):
        with patch("filedb.engine.audit.time.time_ns", side_effect=[2_000_000_000, 1_000_000_000]):
            first = audit.append("first")
            second = audit.append("second")
        assert second.timestamp >= first.timestamp

    def test_line_count(self, audit):
        assert audit.line_count() == 0
        audit.append("a")
        audit.append("b", is_error=True)
        assert audit.line_count() == 2

    def test_records_missing_file(self, audit):
        assert audit.records() == []

    def test_truncate(self, audit):
        audit.append("a")
        audit.truncate()
        assert audit.line_count() == 0

    def test_creates_parent_directory(self, tmp_path):
        log = AuditLog(tmp_path / "nested" / "logs" / "log.txt")
        log.append("hello")
        assert log.line_count() == 1

    def test_write_failure_is_not_raised(self, tmp_path, caplog):
        # A directory where the log file should be makes open() fail
        target = tmp_path / "log.txt"
        target.mkdir()
        log = AuditLog(target)
        record = log.append("lost")
        assert record.message == "lost"
        assert "Audit append" in caplog.text

    def test_concurrent_appends_keep_lines_intact(self, audit):
        def worker(n):
            for i in range(50):
                audit.append(f"worker {n} op {i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = audit.records()
        assert len(records) == 400
        assert audit.line_count() == 400
        assert all(r.message.startswith("worker ") for r in records)

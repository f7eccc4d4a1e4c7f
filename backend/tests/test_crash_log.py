"""
Unit tests for the append-only crash log.
"""

import json
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from crash_collector.exceptions import LogWriteError
from crash_collector.services.crash_log import CrashLog


class TestCrashLogAppend:

    def test_creates_file_if_missing(self, tmp_path):
        path = tmp_path / "crashes.txt"
        log = CrashLog(path)

        log.append('{"REPORT_ID": "a"}')

        assert path.read_text() == '{"REPORT_ID": "a"}\n'

    def test_creates_missing_parent_directories(self, tmp_path):
        path = tmp_path / "logs" / "acra" / "crashes.txt"

        CrashLog(path).append("x")

        assert path.exists()

    def test_appends_in_call_order(self, tmp_path):
        path = tmp_path / "crashes.txt"
        log = CrashLog(path)

        log.append("first")
        log.append("second")

        assert path.read_text().splitlines() == ["first", "second"]

    def test_existing_content_preserved(self, tmp_path):
        path = tmp_path / "crashes.txt"
        path.write_text("old entry\n")

        CrashLog(path).append("new entry")

        assert path.read_text() == "old entry\nnew entry\n"

    def test_payload_written_verbatim(self, tmp_path):
        """Malformed payloads are stored exactly as received."""
        path = tmp_path / "crashes.txt"
        payload = '{"REPORT_ID": "broken", "STACK_TRACE": '

        CrashLog(path).append(payload)

        assert path.read_text() == payload + "\n"

    def test_write_is_fsynced(self, tmp_path):
        with patch("crash_collector.services.crash_log.os.fsync") as mock_fsync:
            CrashLog(tmp_path / "crashes.txt").append("x")

        mock_fsync.assert_called_once()

    def test_unwritable_path_raises_log_write_error(self, tmp_path):
        # A directory where the file should be makes open() fail
        path = tmp_path / "crashes.txt"
        path.mkdir()

        with pytest.raises(LogWriteError) as exc_info:
            CrashLog(path).append("x")

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_fsync_failure_raises_log_write_error(self, tmp_path):
        with patch(
            "crash_collector.services.crash_log.os.fsync",
            side_effect=OSError(5, "Input/output error"),
        ):
            with pytest.raises(LogWriteError):
                CrashLog(tmp_path / "crashes.txt").append("x")


class TestCrashLogConcurrency:
    """Concurrent appends must land as whole, separate lines."""

    def test_concurrent_appends_do_not_interleave(self, tmp_path):
        path = tmp_path / "crashes.txt"
        log = CrashLog(path)
        n = 50
        # Large lines make torn writes likely if appends were not serialised
        payloads = [
            json.dumps({"REPORT_ID": f"r-{i}", "STACK_TRACE": f"{i}" * 50_000})
            for i in range(n)
        ]
        barrier = threading.Barrier(n)

        def write(payload):
            barrier.wait()
            log.append(payload)

        with ThreadPoolExecutor(max_workers=n) as pool:
            list(pool.map(write, payloads))

        lines = path.read_text().splitlines()
        assert len(lines) == n
        decoded = [json.loads(line) for line in lines]
        assert sorted(d["REPORT_ID"] for d in decoded) == sorted(f"r-{i}" for i in range(n))
        assert sorted(lines) == sorted(payloads)

from __future__ import annotations

from pathlib import Path

from amazoncf.logging import setup_logging, teardown_logging
from amazoncf.wait import wait_for


def _ready_on_second_call():
    calls = {"count": 0}

    def condition() -> bool:
        calls["count"] += 1
        return calls["count"] > 1

    return condition


class TestLogging:
    def test_file_sink_captures_debug_logs(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "amazoncf.log"
        handler_ids = setup_logging(file=log_file)
        try:
            wait_for(_ready_on_second_call(), interval=0, max_attempts=3, description="stack web-1")
        finally:
            teardown_logging(handler_ids)

        assert "Waiting for stack web-1 (attempt 1)" in log_file.read_text()

    def test_stderr_quiet_without_debug(self, capsys):
        handler_ids = setup_logging()
        try:
            wait_for(_ready_on_second_call(), interval=0, max_attempts=3, description="stack web-1")
        finally:
            teardown_logging(handler_ids)

        assert "Waiting for" not in capsys.readouterr().err

    def test_stderr_shows_debug_when_requested(self, capsys):
        handler_ids = setup_logging(debug=True)
        try:
            wait_for(_ready_on_second_call(), interval=0, max_attempts=3, description="stack web-1")
        finally:
            teardown_logging(handler_ids)

        assert "Waiting for stack web-1" in capsys.readouterr().err

    def test_disabled_after_teardown(self, tmp_path: Path):
        log_file = tmp_path / "amazoncf.log"
        teardown_logging(setup_logging(file=log_file))

        wait_for(_ready_on_second_call(), interval=0, max_attempts=3)

        assert log_file.read_text() == ""

    def test_handler_per_sink(self, tmp_path: Path):
        handler_ids = setup_logging(file=tmp_path / "amazoncf.log")
        try:
            assert len(handler_ids) == 2
        finally:
            teardown_logging(handler_ids)

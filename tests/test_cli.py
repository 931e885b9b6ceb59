"""Tests for the toolexec CLI and the truncation telemetry it reports."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from toolexec.cli import app
from toolexec.session.wire import EventType, Wire
from toolexec.telemetry import ToolOutputTruncatedEvent, log_tool_output_truncated

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("TOOLEXEC_MODEL", "TOOLEXEC_TRUNCATE_THRESHOLD", "TOOLEXEC_TEMP_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestConfigCommand:
    def test_prints_effective_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"model": "gemini-3-flash"}))

        result = runner.invoke(app, ["config", "--config", str(path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["model"] == "gemini-3-flash"
        assert data["truncation"]["enabled"] is True


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell required")
class TestRunCommand:
    def test_success_exit_code(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["run", "echo from-cli"])
        assert result.exit_code == 0
        assert "from-cli" in result.output
        assert "status: success" in result.output

    def test_error_exit_code(self) -> None:
        result = runner.invoke(app, ["run", "exit 4"])
        assert result.exit_code == 1
        assert "status: error" in result.output
        assert "error: exit=4: exit 4" in result.output

    def test_truncation_reported(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("TOOLEXEC_TEMP_DIR", str(tmp_path))
        result = runner.invoke(
            app, ["run", "seq 1 2000", "--threshold", "500", "--lines", "10"]
        )
        assert result.exit_code == 0
        assert "[truncated]" in result.output
        assert f"full output: {tmp_path}" in result.output


class TestTelemetry:
    def _event(self) -> ToolOutputTruncatedEvent:
        return ToolOutputTruncatedEvent(
            prompt_id="p",
            tool_name="run_shell_command",
            original_content_length=5000,
            truncated_content_length=900,
            threshold=1000,
            lines=10,
        )

    def test_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="toolexec.telemetry"):
            log_tool_output_truncated(self._event())
        assert "5000 -> 900" in caplog.text

    def test_published(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        log_tool_output_truncated(self._event(), wire)
        event = q.get_nowait()
        assert event.type == EventType.TOOL_OUTPUT_TRUNCATED
        assert event.data["prompt_id"] == "p"
        assert event.data["threshold"] == 1000

"""Tests for the bgharness CLI commands."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bgharness import __version__
from bgharness.cli import app
from tests.helpers import PYTHON, READY_THEN_WORKING

runner = CliRunner()


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCheck:
    """Tests for ``bgharness check``."""

    def test_all_present(self) -> None:
        result = runner.invoke(app, ["check", PYTHON])
        assert result.exit_code == 0

    def test_missing_utility(self) -> None:
        result = runner.invoke(app, ["check", PYTHON, "bgharness-no-such-tool"])
        assert result.exit_code == 1
        assert "missing" in result.stdout


class TestWatch:
    """Tests for ``bgharness watch``."""

    def test_match(self, tmp_path: Path) -> None:
        log = tmp_path / "server.log"
        log.write_text("booting\nready\n")

        result = runner.invoke(app, ["watch", "ready", "--file", str(log), "--timeout", "2"])

        assert result.exit_code == 0
        assert "matched" in result.stdout

    def test_timeout(self, tmp_path: Path) -> None:
        log = tmp_path / "server.log"
        log.write_text("booting\n")

        result = runner.invoke(app, ["watch", "ready", "-f", str(log), "-t", "0.2"])

        assert result.exit_code == 1

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("default_timeout: -1\n")
        log = tmp_path / "server.log"
        log.write_text("ready\n")

        result = runner.invoke(app, ["--config", str(bad), "watch", "ready", "-f", str(log)])

        assert result.exit_code == 2

    def test_invalid_environment(self, tmp_path: Path) -> None:
        log = tmp_path / "server.log"
        log.write_text("ready\n")

        result = runner.invoke(
            app, ["watch", "ready", "-f", str(log)], env={"BGHARNESS_DIAGNOSTIC_FDS": "x"}
        )

        assert result.exit_code == 2
        assert not isinstance(result.exception, ValueError)

    def test_invalid_pattern(self, tmp_path: Path) -> None:
        log = tmp_path / "server.log"
        log.write_text("ready\n")

        result = runner.invoke(app, ["watch", "(", "-f", str(log), "-t", "0.2"])

        assert result.exit_code == 1
        assert "invalid pattern" in result.stdout


@pytest.mark.timeout(20)
class TestRun:
    """Tests for ``bgharness run``."""

    def test_wait_and_stop(self, tmp_path: Path) -> None:
        code = textwrap.dedent(READY_THEN_WORKING)
        result = runner.invoke(
            app,
            ["run", "--root", str(tmp_path), "--wait", "working", "--timeout", "5",
             "--", PYTHON, "-c", code],
        )

        assert result.exit_code == 0, result.output
        assert "exit status: 0" in result.stdout
        assert not (tmp_path / "background-run-output.txt").exists()

    def test_wait_timeout_fails(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["run", "--root", str(tmp_path), "--wait", "never", "--timeout", "0.3",
             "--", PYTHON, "-c", "import time; time.sleep(30)"],
        )

        assert result.exit_code == 1
        assert "exit status: 143" in result.stdout

    def test_unknown_signal(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["run", "--root", str(tmp_path), "--signal", "NOPE",
             "--", PYTHON, "-c", "import time; time.sleep(30)"],
        )

        assert result.exit_code == 2

    def test_missing_command_status_only_checked_on_request(self, tmp_path: Path) -> None:
        missing = str(tmp_path / "no-such-program")

        plain = runner.invoke(app, ["run", "--root", str(tmp_path), "--", missing])
        checked = runner.invoke(
            app, ["run", "--root", str(tmp_path), "--check-status", "--", missing]
        )

        assert plain.exit_code == 0
        assert "exit status: 127" in plain.stdout
        assert checked.exit_code == 1

"""Tests for the subprocess wrapper."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

from driverforge.core.errors import CommandNotFound
from driverforge.core.process import format_command, run_command


class TestFormatCommand:
    def test_plain(self):
        assert format_command(["make", "-j8", "-C", "out"]) == "make -j8 -C out"

    def test_quotes_spaces(self):
        assert format_command(["git", "show", "a b"]) == "git show 'a b'"

    def test_accepts_paths(self):
        assert format_command([Path("/opt/node/configure")]) == "/opt/node/configure"


class TestRunCommand:
    def test_captures_output(self, tmp_path: Path):
        result = run_command(
            [sys.executable, "-c", "print('hello')"], cwd=tmp_path, capture=True
        )
        assert result.returncode == 0
        assert result.stdout.strip() == "hello"

    def test_returns_non_zero_exit(self):
        result = run_command([sys.executable, "-c", "raise SystemExit(3)"], capture=True)
        assert result.returncode == 3

    def test_env_is_passed_through(self):
        result = run_command(
            [sys.executable, "-c", "import os; print(os.environ['DF_MARK'])"],
            env={**os.environ, "DF_MARK": "set"},
            capture=True,
        )
        assert result.stdout.strip() == "set"

    def test_logs_command_first(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="driverforge.core.process"):
            run_command([sys.executable, "-c", "pass"])
        assert any(r.getMessage().startswith("$ ") for r in caplog.records)

    def test_missing_executable(self, tmp_path: Path):
        with pytest.raises(CommandNotFound):
            run_command([str(tmp_path / "no-such-tool")])

"""Unit tests for shell execution utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from kennel.utils.shell import CommandResult, run_command


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        assert CommandResult(stdout="", stderr="", returncode=0).success
        assert not CommandResult(stdout="", stderr="", returncode=1).success


class TestRunCommand:
    """Tests for run_command function."""

    @patch("kennel.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """Output and exit code are passed through."""
        mock_run.return_value = MagicMock(stdout="out", stderr="err", returncode=3)

        result = run_command(["installer", "-pkg", "x"], timeout=5.0)

        assert result == CommandResult(stdout="out", stderr="err", returncode=3)
        kwargs = mock_run.call_args.kwargs
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] == 5.0

    def test_real_command(self) -> None:
        """A real process runs and reports its exit code."""
        result = run_command(["sh", "-c", "echo hello; exit 2"])
        assert result.stdout.strip() == "hello"
        assert result.returncode == 2

    def test_missing_executable(self) -> None:
        with pytest.raises(FileNotFoundError):
            run_command(["/nonexistent/kennel-test-binary"])

    def test_timeout(self) -> None:
        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["sleep", "5"], timeout=0.1)

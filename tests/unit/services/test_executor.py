"""Tests for CommandExecutor."""

import os
import subprocess
import sys
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from terasky_insights.errors import ExecutionFailed
from terasky_insights.services.engine import EngineBinding
from terasky_insights.services.executor import CommandExecutor
from terasky_insights.services.retry_policy import RetryPolicy

ENGINE = EngineBinding(name="docker", path="/usr/bin/docker")


def make_executor(debug: bool = False):
    output = StringIO()
    console = Console(file=output, force_terminal=False, width=200)
    return CommandExecutor(ENGINE, debug=debug, console=console), output


class TestCommandExecutor:
    @patch("terasky_insights.services.executor.subprocess.run")
    def test_runs_engine_with_argument_list(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="  abc123\n")
        executor, _ = make_executor()

        result = executor.run(["ps", "-a", "-q"])

        assert result.output == "abc123"
        assert result.success
        assert result.retried is False
        args, kwargs = mock_run.call_args
        assert args[0] == ["/usr/bin/docker", "ps", "-a", "-q"]
        assert kwargs["stderr"] == subprocess.STDOUT
        assert "shell" not in kwargs

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_user_values_are_not_shell_interpreted(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        executor, _ = make_executor()

        executor.run(["run", "default; rm -rf /"])

        assert mock_run.call_args[0][0][-1] == "default; rm -rf /"

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_non_zero_exit_raises_with_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=125, stdout="Error: no such image\n")
        executor, _ = make_executor()

        with pytest.raises(ExecutionFailed) as exc_info:
            executor.run(["run", "missing:latest"])

        error = exc_info.value
        assert error.returncode == 125
        assert error.output == "Error: no such image"
        assert error.command == ["run", "missing:latest"]
        assert "exited with status 125" in str(error)

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_spawn_failure_raises(self, mock_run):
        mock_run.side_effect = FileNotFoundError("docker")
        executor, _ = make_executor()

        with pytest.raises(ExecutionFailed) as exc_info:
            executor.run(["ps"])

        assert exc_info.value.returncode is None
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_timeout_raises_with_partial_output(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(
            cmd="docker", timeout=5, output=b"partial\n"
        )
        executor, _ = make_executor()

        with pytest.raises(ExecutionFailed) as exc_info:
            executor.run(["pull", "image"])

        assert exc_info.value.output == "partial"

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_debug_echoes_command_and_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="1\n")
        executor, output = make_executor(debug=True)

        executor.run(["logs", "terasky-insights"])

        text = output.getvalue()
        assert "Executing command: docker logs terasky-insights" in text
        assert "Command output: 1" in text

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_quiet_without_debug(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="1\n")
        executor, output = make_executor()

        executor.run(["logs", "terasky-insights"])

        assert output.getvalue() == ""

    @patch("terasky_insights.services.executor.subprocess.run")
    def test_logs_helper(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="line\n")
        executor, _ = make_executor()

        result = executor.logs("terasky-insights")

        assert result.output == "line"
        assert mock_run.call_args[0][0] == ["/usr/bin/docker", "logs", "terasky-insights"]


ENGINE_SCRIPT = """#!/bin/sh
case "$1" in
  exec)
    echo "service restart failed"
    exit 1
    ;;
  logs)
    printf 'db log \\377\\376'
    exit 0
    ;;
  ps)
    printf 'abc\\377\\376\\n'
    exit 0
    ;;
  rm)
    printf '\\377 no such container\\n'
    exit 1
    ;;
esac
"""


@pytest.fixture
def script_engine(tmp_path):
    """Engine binding backed by a shell script that emits invalid UTF-8."""
    path = tmp_path / "fake-engine"
    path.write_text(ENGINE_SCRIPT)
    os.chmod(path, 0o755)
    return EngineBinding(name="docker", path=str(path))


@pytest.mark.skipif(sys.platform == "win32", reason="requires /bin/sh")
class TestUndecodableOutput:
    @patch("terasky_insights.services.executor.subprocess.run")
    def test_output_decoded_with_replacement(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        executor, _ = make_executor()

        executor.run(["ps"])

        assert mock_run.call_args.kwargs["errors"] == "replace"

    def test_invalid_bytes_replaced_on_success(self, script_engine):
        executor = CommandExecutor(script_engine, console=Console(file=StringIO()))

        result = executor.run(["ps"])

        assert result.output == "abc\ufffd\ufffd"

    def test_invalid_bytes_replaced_on_failure(self, script_engine):
        executor = CommandExecutor(script_engine, console=Console(file=StringIO()))

        with pytest.raises(ExecutionFailed) as exc_info:
            executor.run(["rm", "-f", "abc"])

        assert exc_info.value.returncode == 1
        assert exc_info.value.output == "\ufffd no such container"

    def test_retry_keeps_original_failure_when_logs_are_undecodable(
        self, script_engine
    ):
        executor = CommandExecutor(script_engine, console=Console(file=StringIO()))
        policy = RetryPolicy(executor, "terasky-insights")

        with pytest.raises(ExecutionFailed) as exc_info:
            policy.execute(["exec", "terasky-insights", "true"], retry=True)

        error = exc_info.value
        assert error.output == "service restart failed"
        assert error.returncode == 1
        assert error.container_logs == "db log \ufffd\ufffd"

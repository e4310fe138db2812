"""Tests for CommandRunner."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from krew_harness.errors import (
    CommandTimeoutError,
    NonZeroExitError,
    SpawnError,
)
from krew_harness.models.command import CommandInvocation
from krew_harness.sandbox.runner import CommandRunner


class FailCalled(Exception):
    pass


def recording_fail(messages: list[str]):
    def fail(message: str):
        messages.append(message)
        raise FailCalled(message)

    return fail


@pytest.fixture
def python_invocation():
    def _invocation(code: str, *args: str, **kwargs) -> CommandInvocation:
        return CommandInvocation(
            program=Path(sys.executable),
            args=("-c", code, *args),
            env={"PATH": os.environ.get("PATH", ""), "GREETING": "hello"},
            **kwargs,
        )

    return _invocation


class TestRun:
    def test_success_captures_streams(self, python_invocation):
        invocation = python_invocation(
            "import sys; print('out'); print('err', file=sys.stderr)"
        )

        result = CommandRunner().run(invocation)

        assert result.success
        assert result.exit_code == 0
        assert result.stdout == "out\n"
        assert result.stderr == "err\n"
        assert result.error is None
        assert result.duration_seconds >= 0

    def test_passes_arguments_and_environment(self, python_invocation):
        invocation = python_invocation(
            "import os, sys; print(os.environ['GREETING'], *sys.argv[1:])", "a b", "c"
        )

        result = CommandRunner().run(invocation)

        assert result.stdout == "hello a b c\n"

    def test_environment_is_not_inherited(self, python_invocation, monkeypatch):
        monkeypatch.setenv("KREW_HARNESS_LEAK", "1")
        invocation = python_invocation("import os; print('KREW_HARNESS_LEAK' in os.environ)")

        result = CommandRunner().run(invocation)

        assert result.stdout == "False\n"

    def test_runs_in_working_directory(self, python_invocation, tmp_path: Path):
        invocation = python_invocation("import os; print(os.getcwd())", cwd=tmp_path)

        result = CommandRunner().run(invocation)

        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    def test_non_zero_exit_is_failure(self, python_invocation):
        invocation = python_invocation("import sys; print('partial'); sys.exit(3)")

        result = CommandRunner().run(invocation)

        assert not result.success
        assert result.exit_code == 3
        assert isinstance(result.error, NonZeroExitError)
        assert result.error.exit_code == 3
        assert result.error.result is result
        assert result.stdout == "partial\n"

    def test_missing_program_is_spawn_failure(self, tmp_path: Path):
        invocation = CommandInvocation(program=tmp_path / "does-not-exist")

        result = CommandRunner().run(invocation)

        assert not result.success
        assert result.exit_code is None
        assert isinstance(result.error, SpawnError)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_non_executable_program_is_spawn_failure(self, tmp_path: Path):
        program = tmp_path / "plain-file"
        program.write_text("#!/bin/sh\nexit 0\n")
        program.chmod(0o644)

        result = CommandRunner().run(CommandInvocation(program=program))

        assert isinstance(result.error, SpawnError)

    def test_timeout_is_failure(self, python_invocation):
        invocation = python_invocation("import time; time.sleep(30)", timeout=0.5)

        result = CommandRunner().run(invocation)

        assert not result.success
        assert isinstance(result.error, CommandTimeoutError)
        assert result.exit_code is None

    def test_merge_stderr_interleaves(self, python_invocation):
        invocation = python_invocation(
            "import sys\n"
            "print('one', flush=True)\n"
            "print('two', file=sys.stderr, flush=True)\n"
            "print('three', flush=True)",
            merge_stderr=True,
        )

        result = CommandRunner().run(invocation)

        assert result.stdout == "one\ntwo\nthree\n"
        assert result.stderr == ""
        assert result.combined_output == result.stdout

    def test_undecodable_output_is_replaced(self, python_invocation):
        invocation = python_invocation("import sys; sys.stdout.buffer.write(b'ok\\xff\\n')")

        result = CommandRunner().run(invocation)

        assert result.stdout.startswith("ok")
        assert "�" in result.stdout

    def test_timeout_keeps_partial_output(self):
        expired = subprocess.TimeoutExpired(cmd=["krew"], timeout=1, output=b"partial", stderr=None)
        with patch("krew_harness.sandbox.runner.subprocess.run", side_effect=expired):
            result = CommandRunner().run(CommandInvocation(program=Path("krew"), timeout=1))

        assert result.stdout == "partial"
        assert isinstance(result.error, CommandTimeoutError)

    def test_run_never_invokes_fail_handler(self, python_invocation):
        messages: list[str] = []
        runner = CommandRunner(fail=recording_fail(messages))

        result = runner.run(python_invocation("raise SystemExit(1)"))

        assert not result.success
        assert messages == []

    def test_uses_invocation_env(self):
        invocation = CommandInvocation(program=Path("krew"), args=("version",), env={"A": "1"})

        with patch("krew_harness.sandbox.runner.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")
            CommandRunner().run(invocation)

        call_kwargs = mock_run.call_args.kwargs
        assert mock_run.call_args.args[0] == ["krew", "version"]
        assert call_kwargs["env"] == {"A": "1"}
        assert call_kwargs["stdin"] == subprocess.DEVNULL


class TestRunOrFail:
    def test_returns_stdout_unchanged(self, python_invocation):
        invocation = python_invocation("import sys; sys.stdout.write('  padded output \\n\\n')")

        output = CommandRunner().run_or_fail(invocation)

        assert output == "  padded output \n\n"

    def test_failure_calls_handler_with_output(self, python_invocation):
        messages: list[str] = []
        runner = CommandRunner(fail=recording_fail(messages))
        invocation = python_invocation(
            "import sys; print('some stdout'); print('some stderr', file=sys.stderr); sys.exit(2)"
        )

        with pytest.raises(FailCalled):
            runner.run_or_fail(invocation)

        assert len(messages) == 1
        assert "some stdout" in messages[0]
        assert "some stderr" in messages[0]
        assert "Exited with status 2" in messages[0]

    def test_spawn_failure_calls_handler(self, tmp_path: Path):
        messages: list[str] = []
        runner = CommandRunner(fail=recording_fail(messages))

        with pytest.raises(FailCalled):
            runner.run_or_fail(CommandInvocation(program=tmp_path / "missing"))

        assert "Failed to start" in messages[0]

    def test_default_handler_raises_result_error(self, python_invocation):
        with pytest.raises(NonZeroExitError) as excinfo:
            CommandRunner().run_or_fail(python_invocation("raise SystemExit(4)"))

        assert excinfo.value.exit_code == 4
        assert any("status:" in note for note in excinfo.value.__notes__)

    def test_default_handler_raises_spawn_error(self, tmp_path: Path):
        with pytest.raises(SpawnError):
            CommandRunner().run_or_fail(CommandInvocation(program=tmp_path / "missing"))


class TestOutputLogging:
    def test_captured_streams_go_to_output_logger(self, python_invocation, caplog):
        invocation = python_invocation(
            "import sys; print('installed'); print('careful', file=sys.stderr)"
        )

        with caplog.at_level("INFO", logger="krew_harness.output"):
            CommandRunner().run(invocation)

        messages = [r.getMessage() for r in caplog.records if r.name == "krew_harness.output"]
        assert any(m.endswith("stdout| installed") for m in messages)
        assert any(m.endswith("stderr| careful") for m in messages)

    def test_failed_command_output_is_logged(self, python_invocation, caplog):
        with caplog.at_level("INFO", logger="krew_harness.output"):
            CommandRunner().run(python_invocation("print('partial'); raise SystemExit(2)"))

        assert "stdout| partial" in caplog.text

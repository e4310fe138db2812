"""Subprocess execution for the tool under test and its installed plugins."""

from __future__ import annotations

import subprocess
import time
from collections.abc import Callable
from typing import NoReturn

from krew_harness.errors import (
    CommandError,
    CommandTimeoutError,
    NonZeroExitError,
    SpawnError,
)
from krew_harness.logging import get_logger, log_command_output
from krew_harness.models.command import CommandInvocation, CommandResult

logger = get_logger(__name__)

FailHandler = Callable[[str], NoReturn]


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


class CommandRunner:
    """Runs CommandInvocations and translates the outcome into CommandResults.

    ``run`` never raises for process failures; ``run_or_fail`` hands every
    failure to ``fail`` together with the captured output. The default
    handler raises the result's error, the pytest integration passes
    ``pytest.fail`` instead.
    """

    def __init__(self, fail: FailHandler | None = None):
        self._fail = fail

    def run(self, invocation: CommandInvocation) -> CommandResult:
        """Execute an invocation and wait for it to finish.

        Args:
            invocation: What to run, with which arguments and environment

        Returns:
            CommandResult; ``result.error`` is set when the program could not
            be started, timed out, or exited non-zero
        """
        argv = invocation.argv
        logger.debug(f"Running: {invocation.display()}")

        start_time = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                cwd=invocation.cwd,
                env=dict(invocation.env),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if invocation.merge_stderr else subprocess.PIPE,
                timeout=invocation.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            result = CommandResult(
                argv=argv,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                duration_seconds=time.monotonic() - start_time,
                merged=invocation.merge_stderr,
            )
            log_command_output(result)
            return self._failed(
                result,
                CommandTimeoutError(f"Timeout after {invocation.timeout} seconds", result),
            )
        except OSError as e:
            result = CommandResult(
                argv=argv,
                duration_seconds=time.monotonic() - start_time,
                merged=invocation.merge_stderr,
            )
            return self._failed(result, SpawnError(f"Failed to start {argv[0]}: {e}", result))

        result = CommandResult(
            argv=argv,
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
            exit_code=completed.returncode,
            duration_seconds=time.monotonic() - start_time,
            merged=invocation.merge_stderr,
        )
        log_command_output(result)

        if completed.returncode != 0:
            return self._failed(
                result,
                NonZeroExitError(
                    f"Exited with status {completed.returncode}", completed.returncode, result
                ),
            )

        logger.debug(f"Finished in {result.duration_seconds:.2f}s: {invocation.display()}")
        return result

    def run_or_fail(self, invocation: CommandInvocation) -> str:
        """Execute an invocation, treating any failure as fatal.

        Returns:
            Standard output exactly as captured
        """
        result = self.run(invocation)
        if not result.success:
            self.fail(result)
        return result.stdout

    def fail(self, result: CommandResult) -> NoReturn:
        """Report a failed result through the configured handler."""
        message = f"Command failed\n{result.describe()}"
        if self._fail is not None:
            self._fail(message)
        error = result.error or CommandError("Command failed", result)
        error.add_note(result.describe())
        raise error

    def _failed(self, result: CommandResult, error: CommandError) -> CommandResult:
        result.error = error
        logger.debug(f"{error}: {' '.join(result.argv)}")
        return result

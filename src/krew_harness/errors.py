"""Exception hierarchy for krew-harness.

Process failures are never raised by ``CommandRunner.run``; they are stored on
the returned ``CommandResult`` and only raised when a caller asks for it
(``run_or_fail`` or ``CommandResult.check``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from krew_harness.models.command import CommandResult


class HarnessError(Exception):
    """Base class for all krew-harness errors."""


class SandboxCreationError(HarnessError):
    """The sandbox root directory could not be allocated."""


class SandboxTeardownError(HarnessError):
    """The sandbox root directory could not be removed."""


class IndexSnapshotError(HarnessError):
    """The index snapshot is missing, empty or unreadable."""


class ContractNotFoundError(HarnessError, LookupError):
    """No plugin registered a contract for the requested tool."""


class CommandError(HarnessError):
    """A command did not complete successfully."""

    def __init__(self, message: str, result: CommandResult | None = None):
        super().__init__(message)
        self.result = result


class SpawnError(CommandError):
    """The target executable could not be started."""


class NonZeroExitError(CommandError):
    """The target ran but exited with a non-zero status."""

    def __init__(self, message: str, exit_code: int, result: CommandResult | None = None):
        super().__init__(message, result)
        self.exit_code = exit_code


class CommandTimeoutError(CommandError):
    """The target did not finish before its deadline."""

"""Command invocation and result models."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType

from krew_harness.errors import CommandError


@dataclass(frozen=True)
class CommandInvocation:
    """A requested execution of the tool under test or an installed plugin."""

    program: Path
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    cwd: Path | None = None
    merge_stderr: bool = False
    """Capture stderr interleaved into stdout instead of separately"""

    timeout: float | None = None
    """Seconds to wait before the process is killed; None waits forever"""

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(str(a) for a in self.args))
        if not isinstance(self.env, MappingProxyType):
            object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def argv(self) -> list[str]:
        return [str(self.program), *self.args]

    def display(self) -> str:
        """Shell-quoted command line for log and failure messages."""
        return shlex.join(self.argv)

    def with_args(self, *args: str) -> CommandInvocation:
        return replace(self, args=(*self.args, *args))


@dataclass
class CommandResult:
    """Outcome of running a CommandInvocation."""

    argv: list[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    """Process exit status; None when the process never ran to completion"""

    duration_seconds: float = 0.0
    merged: bool = False
    error: CommandError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def output(self) -> str:
        """Standard output (stdout and stderr interleaved when merged)."""
        return self.stdout

    @property
    def combined_output(self) -> str:
        """Everything the process printed, for diagnostics."""
        if self.merged or not self.stderr:
            return self.stdout
        if not self.stdout:
            return self.stderr
        separator = "" if self.stdout.endswith("\n") else "\n"
        return f"{self.stdout}{separator}{self.stderr}"

    def check(self) -> CommandResult:
        """Raise the recorded error, if any; otherwise return self."""
        if self.error is not None:
            raise self.error
        return self

    def describe(self) -> str:
        """Multi-line failure report including the captured streams."""
        status = self.error if self.error is not None else "succeeded"
        parts = [f"command: {shlex.join(self.argv)}", f"status: {status}"]
        if self.merged:
            parts.append(f"output:\n{self.stdout.rstrip() or '<empty>'}")
        else:
            parts.append(f"stdout:\n{self.stdout.rstrip() or '<empty>'}")
            parts.append(f"stderr:\n{self.stderr.rstrip() or '<empty>'}")
        return "\n".join(parts)

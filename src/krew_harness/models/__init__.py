"""Data models for krew-harness."""

from krew_harness.models.command import CommandInvocation, CommandResult
from krew_harness.models.contract import PathKind, ToolContract
from krew_harness.models.sandbox import HarnessState, SandboxConfig

__all__ = [
    "CommandInvocation",
    "CommandResult",
    "HarnessState",
    "PathKind",
    "SandboxConfig",
    "ToolContract",
]

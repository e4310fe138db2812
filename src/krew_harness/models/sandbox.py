from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from krew_harness.config import SANDBOX_PREFIX


@dataclass
class SandboxConfig:
    """Configuration for a sandbox."""

    base_dir: Path | None = None
    """Parent directory for sandbox roots (defaults to the system temp dir)"""

    prefix: str = SANDBOX_PREFIX
    keep_on_failure: bool = False


class HarnessState(Enum):
    """Lifecycle of a single test's harness."""

    UNINITIALIZED = "uninitialized"
    SANDBOXED = "sandboxed"
    SEEDED = "seeded"
    EXERCISED = "exercised"
    TORN_DOWN = "torn_down"

"""krew-harness: sandboxed end-to-end testing for command-line package managers."""

import pluggy

from krew_harness.config import __version__
from krew_harness.logging import get_logger

# Convenience export for plugins: from krew_harness import hookimpl
hookimpl = pluggy.HookimplMarker("krew_harness")

from krew_harness.assertions import lines  # noqa: E402
from krew_harness.harness import Command, KrewTest, new_test  # noqa: E402
from krew_harness.sandbox import CommandRunner, Sandbox  # noqa: E402

__all__ = [
    "__version__",
    "hookimpl",
    "get_logger",
    "lines",
    "Command",
    "CommandRunner",
    "KrewTest",
    "Sandbox",
    "new_test",
]

from krew_harness.sandbox.runner import CommandRunner
from krew_harness.sandbox.sandbox import Sandbox

__all__ = ["CommandRunner", "Sandbox"]

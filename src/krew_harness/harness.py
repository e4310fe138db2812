"""Per-test facade binding a sandbox, its environment and a command runner."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path

from krew_harness.env import build_environment
from krew_harness.errors import HarnessError
from krew_harness.fixtures.index import IndexFixture, IndexSnapshot
from krew_harness.logging import get_logger
from krew_harness.models.command import CommandInvocation, CommandResult
from krew_harness.models.sandbox import HarnessState
from krew_harness.sandbox.runner import CommandRunner, FailHandler
from krew_harness.sandbox.sandbox import Sandbox
from krew_harness.settings import HarnessSettings, load_settings

logger = get_logger(__name__)


class Command:
    """A CommandInvocation bound to the runner and state of a KrewTest."""

    def __init__(self, test: KrewTest, invocation: CommandInvocation):
        self._test = test
        self.invocation = invocation

    def merged(self) -> Command:
        """Same command, capturing stderr interleaved into stdout."""
        return Command(self._test, replace(self.invocation, merge_stderr=True))

    def with_timeout(self, seconds: float | None) -> Command:
        return Command(self._test, replace(self.invocation, timeout=seconds))

    def run(self) -> CommandResult:
        """Run without failing the test; inspect ``result.success``."""
        self._test._mark_exercised()
        return self._test.runner.run(self.invocation)

    def run_or_fail(self) -> str:
        """Run, failing the test on any error; returns stdout."""
        self._test._mark_exercised()
        return self._test.runner.run_or_fail(self.invocation)

    def __repr__(self) -> str:
        return f"Command({self.invocation.display()!r})"


class KrewTest:
    """Harness for one test case.

    Usage:
        with new_test() as test:
            test.with_index().krew("install", "konfig").run_or_fail()
            test.call("konfig", "--help").run_or_fail()
    """

    def __init__(
        self,
        sandbox: Sandbox,
        binary: Path,
        runner: CommandRunner | None = None,
        snapshot: IndexSnapshot | None = None,
        timeout: float | None = None,
        base_env: Mapping[str, str] | None = None,
    ):
        self.sandbox = sandbox
        self.contract = sandbox.contract
        self.binary = Path(binary)
        self.runner = runner or CommandRunner()
        self.snapshot = snapshot
        self.timeout = timeout
        self.environment = build_environment(sandbox, self.contract, base_env)
        self.state = HarnessState.SANDBOXED
        self._seeded = False

    @property
    def root(self) -> Path:
        return self.sandbox.root

    def with_index(self, snapshot: IndexSnapshot | None = None) -> KrewTest:
        """Seed the sandbox's index from a snapshot (once per test).

        Raises:
            HarnessError: If no snapshot is configured
            IndexSnapshotError: If the snapshot cannot be copied
        """
        self._check_active()
        if self._seeded:
            return self

        snapshot = snapshot or self.snapshot
        if snapshot is None:
            raise HarnessError("No index snapshot configured for this test")

        IndexFixture(snapshot).seed(self.sandbox)
        self._seeded = True
        if self.state is HarnessState.SANDBOXED:
            self.state = HarnessState.SEEDED
        return self

    def krew(self, *args: str) -> Command:
        """Invoke the tool under test with ``args``."""
        return self._command(self.binary, args)

    def call(self, plugin: str, *args: str) -> Command:
        """Invoke an installed plugin directly from the sandbox bin directory."""
        executable = self.contract.plugin_executable(plugin, windows=os.name == "nt")
        return self._command(self.sandbox.bin_path / executable, args)

    def teardown(self) -> None:
        """Remove the sandbox. Safe to call more than once."""
        if self.state is HarnessState.TORN_DOWN:
            return
        self.sandbox.teardown()
        self.state = HarnessState.TORN_DOWN

    def release(self, failed: bool = False) -> None:
        """End the test, keeping the sandbox after a failure if configured."""
        self.sandbox.release(failed)
        self.state = HarnessState.TORN_DOWN

    def _command(self, program: Path, args: tuple[str, ...]) -> Command:
        self._check_active()
        invocation = CommandInvocation(
            program=program,
            args=args,
            env=self.environment,
            cwd=self.sandbox.root,
            timeout=self.timeout,
        )
        return Command(self, invocation)

    def _check_active(self) -> None:
        if self.state is HarnessState.TORN_DOWN or not self.sandbox.active:
            raise HarnessError("Test harness has already been torn down")

    def _mark_exercised(self) -> None:
        self._check_active()
        self.state = HarnessState.EXERCISED

    def __enter__(self) -> KrewTest:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ARG002
        self.release(failed=exc_type is not None)

    def __repr__(self) -> str:
        return f"KrewTest(root={self.sandbox!r}, state={self.state.value})"


@contextmanager
def new_test(
    settings: HarnessSettings | None = None,
    fail: FailHandler | None = None,
    binary: Path | None = None,
) -> Iterator[KrewTest]:
    """Create a KrewTest in a fresh sandbox and tear it down on every exit path.

    Args:
        settings: Harness settings (default: load_settings())
        fail: Handler for run_or_fail failures (e.g., pytest.fail)
        binary: Tool executable, overriding the settings

    Raises:
        HarnessError: If the tool executable cannot be found
        SandboxCreationError: If the sandbox cannot be allocated
    """
    settings = settings or load_settings()
    contract = settings.contract()

    binary = binary or settings.resolve_binary(contract)
    if binary is None:
        raise HarnessError(
            f"'{contract.binary_name}' not found; set KREW_HARNESS_BINARY or binary in the config"
        )

    with Sandbox.create(contract, settings.sandbox_config()) as sandbox:
        with KrewTest(
            sandbox,
            binary,
            runner=CommandRunner(fail=fail),
            snapshot=IndexSnapshot(settings.index_snapshot),
            timeout=settings.timeout,
        ) as test:
            yield test

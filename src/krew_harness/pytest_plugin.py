"""pytest integration for krew-harness.

Registered through the ``pytest11`` entry point, so installing the package is
enough to get the fixtures:

    @pytest.mark.e2e
    def test_install(krew_test):
        krew_test.with_index().krew("install", "konfig").run_or_fail()
        krew_test.call("konfig", "--help").run_or_fail()

Tests marked ``e2e`` are skipped with ``--short`` or ``KREW_HARNESS_SHORT=1``.
"""

from __future__ import annotations

from collections.abc import Generator, Iterator

import pytest

from krew_harness.harness import KrewTest, new_test
from krew_harness.sandbox.sandbox import Sandbox
from krew_harness.settings import HarnessSettings, load_settings

E2E_MARKER = "e2e"

phase_report_key = pytest.StashKey[dict[str, pytest.TestReport]]()
"""Per-item reports of the setup, call and teardown phases"""


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("krew-harness")
    group.addoption(
        "--short",
        action="store_true",
        default=False,
        help="Skip end-to-end tests that run the tool under test",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", f"{E2E_MARKER}: end-to-end test driving the tool under test (skipped by --short)"
    )


@pytest.hookimpl(wrapper=True, tryfirst=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo  # noqa: ARG001
) -> Generator[None, pytest.TestReport, pytest.TestReport]:
    report = yield
    item.stash.setdefault(phase_report_key, {})[report.when] = report
    return report


def _test_failed(request: pytest.FixtureRequest) -> bool:
    """Whether the test body of the requesting item failed."""
    report = request.node.stash.get(phase_report_key, {}).get("call")
    return report is not None and report.failed


def _short_mode(config: pytest.Config) -> bool:
    if config.getoption("--short"):
        return True
    return load_settings(config.rootpath).short


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if not _short_mode(config):
        return

    skip_short = pytest.mark.skip(reason="skipping end-to-end test in short mode")
    for item in items:
        if E2E_MARKER in item.keywords:
            item.add_marker(skip_short)


@pytest.fixture(scope="session")
def harness_settings(pytestconfig: pytest.Config) -> HarnessSettings:
    """Settings resolved from the pytest root directory."""
    return load_settings(pytestconfig.rootpath)


@pytest.fixture
def krew_sandbox(
    harness_settings: HarnessSettings, request: pytest.FixtureRequest
) -> Iterator[Sandbox]:
    """A fresh sandbox for the configured tool, removed after the test.

    Kept for inspection when the test fails and keep_on_failure is set.
    """
    with Sandbox.create(harness_settings.contract(), harness_settings.sandbox_config()) as sandbox:
        yield sandbox
        sandbox.release(failed=_test_failed(request))


@pytest.fixture
def krew_test(
    harness_settings: HarnessSettings, request: pytest.FixtureRequest
) -> Iterator[KrewTest]:
    """A KrewTest whose run_or_fail failures fail the test.

    Skips the test when the tool under test is not installed.
    """
    binary = harness_settings.resolve_binary()
    if binary is None:
        pytest.skip(f"{harness_settings.tool} not found; set KREW_HARNESS_BINARY")

    with new_test(harness_settings, fail=pytest.fail, binary=binary) as test:
        yield test
        test.release(failed=_test_failed(request))

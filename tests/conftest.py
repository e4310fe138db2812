"""Pytest configuration and fixtures for krew-harness tests."""

import logging
import os
import stat
import sys
from pathlib import Path

import pytest

from krew_harness.plugins import reset_plugins
from krew_harness.settings import HarnessSettings

DATA_DIR = Path(__file__).parent / "data"
FAKE_KREW_SCRIPT = DATA_DIR / "fake_krew.py"
INDEX_SNAPSHOT_DIR = DATA_DIR / "index"


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration after each test.

    Tests which call setup_logging() must not affect tests that rely on the
    caplog fixture for log capture.
    """
    yield

    logger = logging.getLogger("krew_harness")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    logging.getLogger("krew_harness.output").setLevel(logging.NOTSET)


@pytest.fixture
def reset_plugin_state():
    """Reset plugin state before and after a test."""
    reset_plugins()
    yield
    reset_plugins()


def write_executable(path: Path, content: str) -> Path:
    """Write a script and mark it executable."""
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(scope="session")
def fake_krew(tmp_path_factory) -> Path:
    """Executable wrapper running tests/data/fake_krew.py with this interpreter."""
    if os.name == "nt":
        pytest.skip("fake krew relies on POSIX shebang scripts")

    bin_dir = tmp_path_factory.mktemp("fake-krew-bin")
    return write_executable(
        bin_dir / "krew",
        f"#!{sys.executable}\n"
        "import runpy\n"
        f"runpy.run_path({str(FAKE_KREW_SCRIPT)!r}, run_name='__main__')\n",
    )


@pytest.fixture
def fake_settings(tmp_path: Path, fake_krew: Path) -> HarnessSettings:
    """Settings pointing the harness at the fake krew and the bundled snapshot."""
    return HarnessSettings(
        binary=fake_krew,
        index_snapshot=INDEX_SNAPSHOT_DIR,
        sandbox_base=tmp_path / "sandboxes",
    )


@pytest.fixture
def make_script(tmp_path: Path):
    """Factory writing executable scripts into a temporary bin directory."""
    if os.name == "nt":
        pytest.skip("test scripts rely on POSIX shebang scripts")

    bin_dir = tmp_path / "scripts"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        return write_executable(bin_dir / name, f"#!{sys.executable}\n{body}")

    return _make

"""Fetching the index snapshot that IndexFixture seeds from.

This is the only place that touches the network, and it is only reached from
the ``fetch-index`` CLI command, never from a test's seeding step.
"""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
from pathlib import Path

from krew_harness.config import GIT_CLONE_TIMEOUT_SECONDS
from krew_harness.errors import IndexSnapshotError
from krew_harness.logging import get_logger
from krew_harness.models.command import CommandInvocation
from krew_harness.sandbox.runner import CommandRunner

logger = get_logger(__name__)


def _pack_directory(source: Path, dest: Path) -> None:
    """Write ``source``'s contents into a gzipped tar at ``dest`` atomically."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(f"{dest.name}.partial")
    with tarfile.open(partial, "w:gz") as archive:
        for item in sorted(source.iterdir()):
            archive.add(item, arcname=item.name)
    os.replace(partial, dest)


def fetch_index_snapshot(
    uri: str,
    dest: Path,
    runner: CommandRunner | None = None,
    git: str | None = None,
    timeout: float | None = GIT_CLONE_TIMEOUT_SECONDS,
) -> Path:
    """Clone the index repository and store it as a snapshot archive.

    Args:
        uri: Git URI of the index repository
        dest: Archive path to write (replaced if it exists)
        runner: Runner used for git (defaults to a raising CommandRunner)
        git: git executable (defaults to the one on PATH)
        timeout: Deadline for the clone in seconds

    Returns:
        Path to the written archive

    Raises:
        IndexSnapshotError: If git is not available
        CommandError: If the clone fails
    """
    git = git or shutil.which("git")
    if git is None:
        raise IndexSnapshotError("git not found in PATH")

    runner = runner or CommandRunner()

    with tempfile.TemporaryDirectory(prefix="krew-index-clone-") as scratch:
        checkout = Path(scratch) / "index"
        invocation = CommandInvocation(
            program=Path(git),
            args=("clone", "--depth", "1", uri, str(checkout)),
            env=os.environ,
            merge_stderr=True,
            timeout=timeout,
        )
        logger.info(f"Cloning {uri}")
        runner.run_or_fail(invocation)

        _pack_directory(checkout, dest)

    logger.info(f"Wrote index snapshot to {dest}")
    return dest

"""Index snapshot seeding.

Tests that need search/info/list data seed their sandbox from a pre-fetched
copy of the plugin index instead of running the tool's update path. The
snapshot is either a directory or a gzipped tar archive whose members are
relative to the index directory (the format written by ``fetch-index``).
"""

from __future__ import annotations

import shutil
import tarfile
from pathlib import Path

from krew_harness.errors import IndexSnapshotError
from krew_harness.logging import get_logger
from krew_harness.sandbox.sandbox import Sandbox

logger = get_logger(__name__)


class IndexSnapshot:
    """Read-only template of the tool's index directory."""

    def __init__(self, source: Path):
        self.source = Path(source)

    @property
    def is_archive(self) -> bool:
        return self.source.is_file()

    def validate(self) -> None:
        """Check the snapshot can be copied.

        Raises:
            IndexSnapshotError: If the snapshot is missing or empty
        """
        hint = "run `krew-harness fetch-index` or set KREW_HARNESS_INDEX_SNAPSHOT"
        if not self.source.exists():
            raise IndexSnapshotError(f"Index snapshot not found: {self.source} ({hint})")

        if self.source.is_dir():
            if not any(self.source.iterdir()):
                raise IndexSnapshotError(f"Index snapshot is empty: {self.source} ({hint})")
        elif not tarfile.is_tarfile(self.source):
            raise IndexSnapshotError(f"Index snapshot is not a tar archive: {self.source}")

    def copy_into(self, dest: Path) -> None:
        """Materialize the snapshot at ``dest`` without modifying the source."""
        self.validate()
        dest.mkdir(parents=True, exist_ok=True)

        if self.is_archive:
            try:
                with tarfile.open(self.source, "r:*") as archive:
                    archive.extractall(dest, filter="data")
            except (tarfile.TarError, OSError) as e:
                raise IndexSnapshotError(f"Failed to extract {self.source}: {e}") from e
        else:
            shutil.copytree(self.source, dest, symlinks=True, dirs_exist_ok=True)

    def __repr__(self) -> str:
        return f"IndexSnapshot({str(self.source)!r})"


class IndexFixture:
    """Seeds a sandbox's index path from an IndexSnapshot.

    Usage:
        fixture = IndexFixture(IndexSnapshot(settings.index_snapshot))
        fixture.seed(sandbox)
    """

    def __init__(self, snapshot: IndexSnapshot):
        self.snapshot = snapshot

    def seed(self, sandbox: Sandbox) -> Sandbox:
        """Copy the snapshot into the sandbox's index directory.

        Only the sandbox's index path is written to.

        Returns:
            The same sandbox, now pre-populated
        """
        index_path = sandbox.index
        logger.info(f"Seeding index from {self.snapshot.source}")
        self.snapshot.copy_into(index_path)
        logger.debug(f"Seeded {index_path}")
        return sandbox

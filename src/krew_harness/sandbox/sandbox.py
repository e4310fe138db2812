import os
import shutil
import stat
import tempfile
from pathlib import Path

from krew_harness.errors import SandboxCreationError, SandboxTeardownError
from krew_harness.logging import get_logger
from krew_harness.models.contract import PathKind, ToolContract
from krew_harness.models.sandbox import SandboxConfig

logger = get_logger(__name__)


def _make_writable_and_retry(func, path, exc) -> None:  # noqa: ARG001
    """rmtree error handler for read-only files left behind by the tool."""
    parent = os.path.dirname(path)
    if parent:
        os.chmod(parent, os.stat(parent).st_mode | stat.S_IWUSR | stat.S_IXUSR)
    os.chmod(path, os.stat(path).st_mode | stat.S_IWUSR)
    func(path)


class Sandbox:
    """Isolated, disposable state directory for one test.

    The root is a fresh directory under the system temp dir (or
    ``config.base_dir``) with a random suffix, so sandboxes created by
    concurrently running tests never collide. Every sub-path is derived from
    the root through the tool contract's layout.

    Usage:
        with Sandbox.create(contract) as sandbox:
            sandbox.path(PathKind.BIN)
    """

    def __init__(self, root: Path, contract: ToolContract, config: SandboxConfig | None = None):
        self._root: Path | None = root
        self.contract = contract
        self.config = config or SandboxConfig()

    @classmethod
    def create(cls, contract: ToolContract, config: SandboxConfig | None = None) -> "Sandbox":
        """Allocate a new sandbox root on disk.

        Raises:
            SandboxCreationError: If the root or home directory cannot be created
        """
        config = config or SandboxConfig()
        root: Path | None = None
        try:
            if config.base_dir is not None:
                config.base_dir.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix=config.prefix, dir=config.base_dir))
            sandbox = cls(root.resolve(), contract, config)
            sandbox.home.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            if root is not None:
                shutil.rmtree(root, ignore_errors=True)
            raise SandboxCreationError(f"Failed to create sandbox: {e}") from e

        logger.debug(f"Created sandbox {sandbox.root}")
        return sandbox

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("Sandbox has been torn down.")
        return self._root

    @property
    def active(self) -> bool:
        return self._root is not None

    def path(self, kind: PathKind) -> Path:
        """Location of a tool directory inside the sandbox."""
        relative = self.contract.layout[kind]
        return self.root / relative if relative else self.root

    @property
    def home(self) -> Path:
        return self.path(PathKind.HOME)

    @property
    def index(self) -> Path:
        return self.path(PathKind.INDEX)

    @property
    def install_path(self) -> Path:
        return self.path(PathKind.INSTALL)

    @property
    def bin_path(self) -> Path:
        return self.path(PathKind.BIN)

    @property
    def download_path(self) -> Path:
        return self.path(PathKind.DOWNLOAD)

    @property
    def receipts_path(self) -> Path:
        return self.path(PathKind.RECEIPTS)

    def teardown(self) -> None:
        """Remove the sandbox root and everything below it.

        Safe to call repeatedly; later calls are no-ops.

        Raises:
            SandboxTeardownError: If the directory tree cannot be removed
        """
        if self._root is None:
            return

        root = self._root
        if root.exists():
            try:
                shutil.rmtree(root, onexc=_make_writable_and_retry)
            except OSError as e:
                logger.error(f"Failed to remove sandbox {root}: {e}")
                raise SandboxTeardownError(f"Failed to remove sandbox {root}: {e}") from e

        # _root stays set until the tree is gone
        self._root = None
        logger.debug(f"Removed sandbox {root}")

    def __enter__(self) -> "Sandbox":
        return self

    def release(self, failed: bool = False) -> None:
        """End the sandbox's life at the end of a test.

        A failed test's sandbox is kept for inspection when
        ``config.keep_on_failure`` is set. Otherwise it is removed; after a
        failure, a removal error is only logged so it does not hide the
        test's own error.

        Raises:
            SandboxTeardownError: If removal fails after a successful test
        """
        if self._root is None:
            return

        if failed and self.config.keep_on_failure:
            logger.warning(f"Keeping sandbox after failure: {self._root}")
            self._root = None
            return

        if not failed:
            self.teardown()
            return

        # The test's own error takes precedence
        try:
            self.teardown()
        except SandboxTeardownError as e:
            logger.warning(f"Ignoring teardown failure during error handling: {e}")

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ARG002
        self.release(failed=exc_type is not None)

    def __repr__(self) -> str:
        return f"Sandbox(root={self._root!r}, contract={self.contract.name!r})"

"""Contract between the harness and the package manager under test."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath


class PathKind(Enum):
    """Directories the tool under test keeps its private state in."""

    HOME = "home"
    INDEX = "index"
    INSTALL = "install"
    BIN = "bin"
    DOWNLOAD = "download"
    RECEIPTS = "receipts"


DEFAULT_LAYOUT: dict[PathKind, str] = {
    PathKind.HOME: "home",
    PathKind.INDEX: "index",
    PathKind.INSTALL: "store",
    PathKind.BIN: "bin",
    PathKind.DOWNLOAD: "downloads",
    PathKind.RECEIPTS: "receipts",
}


def _validate_relative(kind: PathKind, value: str) -> None:
    path = PurePosixPath(value.replace("\\", "/"))
    if path.is_absolute() or value[:1] in ("/", "\\") or ".." in path.parts:
        raise ValueError(f"Layout entry for '{kind.value}' must stay inside the sandbox: {value!r}")


@dataclass(frozen=True)
class ToolContract:
    """How to point a package manager at a sandbox.

    The variable names and the directory layout are a contract with the
    external tool. Plugins register them via ``register_tool_contracts``.
    """

    name: str
    """Contract identifier (e.g., 'krew')"""

    binary_name: str
    """Executable looked up on PATH when no binary is configured"""

    root_var: str | None = None
    """Variable selecting the tool's base directory; set to the sandbox root"""

    path_vars: dict[PathKind, str] = field(default_factory=dict)
    """Explicit per-directory overrides, for tools that support them"""

    layout: dict[PathKind, str] = field(default_factory=lambda: dict(DEFAULT_LAYOUT))
    """Location of each directory, relative to the sandbox root"""

    plugin_prefix: str = ""
    """Prefix of installed plugin executables in the bin directory"""

    extra_env: dict[str, str] = field(default_factory=dict)
    """Constant variables passed to every invocation"""

    description: str | None = None

    def __post_init__(self) -> None:
        missing = [kind.value for kind in PathKind if kind not in self.layout]
        if missing:
            raise ValueError(f"Layout for '{self.name}' is missing: {', '.join(missing)}")
        for kind, value in self.layout.items():
            _validate_relative(kind, value)

    def plugin_executable(self, plugin: str, windows: bool = False) -> str:
        """File name of an installed plugin's executable."""
        name = f"{self.plugin_prefix}{plugin}"
        return f"{name}.exe" if windows else name

    @classmethod
    def from_dict(cls, data: dict) -> ToolContract:
        """Create a ToolContract from a plugin dict.

        Args:
            data: Dict with contract fields. ``layout`` and ``path_vars`` are
                keyed by PathKind values ('index', 'bin', ...).

        Returns:
            ToolContract instance
        """
        layout = dict(DEFAULT_LAYOUT)
        layout.update({PathKind(k): v for k, v in data.get("layout", {}).items()})

        return cls(
            name=data["name"],
            binary_name=data.get("binary_name", data["name"]),
            root_var=data.get("root_var"),
            path_vars={PathKind(k): v for k, v in data.get("path_vars", {}).items()},
            layout=layout,
            plugin_prefix=data.get("plugin_prefix", ""),
            extra_env=dict(data.get("extra_env", {})),
            description=data.get("description"),
        )

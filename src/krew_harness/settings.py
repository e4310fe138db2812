"""Harness settings resolved from krew-harness.toml, .env and the environment."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from krew_harness.config import (
    CONFIG_FILENAME,
    DEFAULT_INDEX_URI,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOOL,
    ENV_BINARY,
    ENV_INDEX_SNAPSHOT,
    ENV_KEEP_SANDBOX,
    ENV_SANDBOX_BASE,
    ENV_SHORT,
    ENV_TIMEOUT,
    ENV_TOOL,
    INDEX_CACHE_PATH,
)
from krew_harness.env import get_project_env
from krew_harness.logging import get_logger
from krew_harness.models.contract import ToolContract
from krew_harness.models.sandbox import SandboxConfig
from krew_harness.utils import expandvars_dict, parse_bool

logger = get_logger(__name__)

SETTINGS_TABLE = "harness"


@dataclass
class HarnessSettings:
    """Resolved harness configuration."""

    tool: str = DEFAULT_TOOL
    """Name of the registered tool contract"""

    binary: Path | None = None
    """Executable under test; looked up on PATH when not set"""

    index_snapshot: Path = INDEX_CACHE_PATH
    index_uri: str = DEFAULT_INDEX_URI
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS
    keep_on_failure: bool = False
    short: bool = False
    """Skip end-to-end tests"""

    sandbox_base: Path | None = None

    def contract(self) -> ToolContract:
        from krew_harness.plugins import get_tool_contract

        return get_tool_contract(self.tool)

    def resolve_binary(self, contract: ToolContract | None = None) -> Path | None:
        """Path of the tool under test, or None if it cannot be found."""
        if self.binary is not None:
            return self.binary

        contract = contract or self.contract()
        found = shutil.which(contract.binary_name)
        return Path(found) if found else None

    def sandbox_config(self) -> SandboxConfig:
        return SandboxConfig(base_dir=self.sandbox_base, keep_on_failure=self.keep_on_failure)

    @classmethod
    def from_dict(cls, data: dict) -> HarnessSettings:
        """Create settings from a ``[harness]`` table."""
        timeout = data.get("timeout", DEFAULT_TIMEOUT_SECONDS)
        return cls(
            tool=data.get("tool", DEFAULT_TOOL),
            binary=Path(data["binary"]) if data.get("binary") else None,
            index_snapshot=Path(data.get("index_snapshot") or INDEX_CACHE_PATH),
            index_uri=data.get("index_uri", DEFAULT_INDEX_URI),
            timeout=float(timeout) if timeout not in (None, "") else None,
            keep_on_failure=parse_bool(data.get("keep_on_failure", False)),
            short=parse_bool(data.get("short", False)),
            sandbox_base=Path(data["sandbox_base"]) if data.get("sandbox_base") else None,
        )


ENV_OVERRIDES = {
    ENV_TOOL: "tool",
    ENV_BINARY: "binary",
    ENV_INDEX_SNAPSHOT: "index_snapshot",
    ENV_TIMEOUT: "timeout",
    ENV_KEEP_SANDBOX: "keep_on_failure",
    ENV_SHORT: "short",
    ENV_SANDBOX_BASE: "sandbox_base",
}
"""Environment variables and the settings keys they override"""


def load_config_file(path: Path) -> dict:
    """Read the ``[harness]`` table from a TOML file. Returns empty dict if absent."""
    if not path.exists():
        return {}

    doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    table = doc.get(SETTINGS_TABLE)
    if table is None:
        return {}
    return table.unwrap()


def load_settings(project_root: Path | None = None) -> HarnessSettings:
    """Resolve settings for a project.

    Precedence: process environment > ``.env`` > ``krew-harness.toml`` >
    defaults. ``${VAR}`` references in the TOML file are expanded.

    Args:
        project_root: Directory holding krew-harness.toml and .env (default: cwd)

    Returns:
        HarnessSettings instance
    """
    project_root = project_root or Path.cwd()
    env = get_project_env(project_root)

    data = expandvars_dict(load_config_file(project_root / CONFIG_FILENAME), environ=env)

    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]

    settings = HarnessSettings.from_dict(data)
    logger.debug(f"Loaded settings: {settings}")
    return settings


def generate_config_toml(settings: HarnessSettings | None = None) -> str:
    """Render settings as krew-harness.toml content."""
    settings = settings or HarnessSettings()

    doc = tomlkit.document()
    doc.add(tomlkit.comment("krew-harness settings; environment variables override these"))

    table = tomlkit.table()
    table["tool"] = settings.tool
    if settings.binary is not None:
        table["binary"] = str(settings.binary)
    table["index_snapshot"] = str(settings.index_snapshot)
    table["index_uri"] = settings.index_uri
    if settings.timeout is not None:
        table["timeout"] = settings.timeout
    table["keep_on_failure"] = settings.keep_on_failure
    if settings.sandbox_base is not None:
        table["sandbox_base"] = str(settings.sandbox_base)
    doc[SETTINGS_TABLE] = table

    return tomlkit.dumps(doc)

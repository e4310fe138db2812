"""Environment variable handling: sandbox environments and .env files."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from krew_harness.models.contract import ToolContract
    from krew_harness.sandbox.sandbox import Sandbox

PASSTHROUGH_VARS = (
    "PATH",
    "SYSTEMROOT",
    "TMPDIR",
    "TEMP",
    "TMP",
    "LANG",
    "LC_ALL",
    "SSL_CERT_FILE",
    "SSL_CERT_DIR",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "NO_PROXY",
    "http_proxy",
    "https_proxy",
    "no_proxy",
)
"""Variables copied from the invoking environment into every sandbox environment"""


def build_environment(
    sandbox: Sandbox,
    contract: ToolContract | None = None,
    base_env: Mapping[str, str] | None = None,
) -> Mapping[str, str]:
    """Derive the process environment for running the tool inside a sandbox.

    Only PASSTHROUGH_VARS are taken from ``base_env`` (``os.environ`` when not
    given); everything else comes from the sandbox and the contract. The home
    directory is always overridden, the contract's root and path variables
    point into the sandbox, and the sandbox bin directory is prepended to PATH
    so installed plugin shims win over system-wide ones.

    Args:
        sandbox: Sandbox the tool should keep its state in
        contract: Tool contract (defaults to the sandbox's contract)
        base_env: Environment to take PATH and friends from

    Returns:
        Read-only mapping of variable name to value
    """
    contract = contract or sandbox.contract
    base_env = os.environ if base_env is None else base_env

    env = {name: base_env[name] for name in PASSTHROUGH_VARS if name in base_env}

    home = str(sandbox.home)
    env["HOME"] = home
    env["USERPROFILE"] = home

    if contract.root_var:
        env[contract.root_var] = str(sandbox.root)

    for kind, var in contract.path_vars.items():
        env[var] = str(sandbox.path(kind))

    env.update(contract.extra_env)

    system_path = base_env.get("PATH", "")
    bin_dir = str(sandbox.bin_path)
    env["PATH"] = f"{bin_dir}{os.pathsep}{system_path}" if system_path else bin_dir

    return MappingProxyType(env)


def load_dotenv(path: Path) -> dict[str, str]:
    """Load environment variables from a .env file. Returns empty dict if file doesn't exist."""
    if not path.exists():
        return {}

    env: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key, value = key.strip(), value.strip()

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        env[key] = value

    return env


def get_project_env(project_root: Path) -> dict[str, str]:
    """Get combined environment from .env file and OS (OS takes precedence)."""
    return {**load_dotenv(project_root / ".env"), **os.environ}

"""Configuration constants for krew-harness."""

import tempfile
from pathlib import Path

# Version
__version__ = "0.1.0"

# Tool under test
DEFAULT_TOOL = "krew"
"""Contract used when no tool is configured"""

DEFAULT_INDEX_URI = "https://github.com/kubernetes-sigs/krew-index.git"
"""Index repository cloned by `krew-harness fetch-index`"""

# Sandbox settings
SANDBOX_PREFIX = "krew-test-"
"""Prefix for sandbox root directories created under the temp dir"""

INDEX_CACHE_PATH = Path(tempfile.gettempdir()) / "krew-persistent-index-cache"
"""Default location of the pre-fetched index snapshot (archive or directory)"""

MIN_CATALOG_SIZE = 10
"""Minimum number of catalog entries a healthy index lists (excluding header)"""

# Processing settings
DEFAULT_TIMEOUT_SECONDS: float | None = None
"""Subprocess deadline; None waits for the process indefinitely"""

GIT_CLONE_TIMEOUT_SECONDS = 300
"""Timeout for cloning the index repository"""

# Project configuration file
CONFIG_FILENAME = "krew-harness.toml"
"""Optional settings file read from the project root"""

# Environment variables read by load_settings()
ENV_BINARY = "KREW_HARNESS_BINARY"
ENV_TOOL = "KREW_HARNESS_TOOL"
ENV_INDEX_SNAPSHOT = "KREW_HARNESS_INDEX_SNAPSHOT"
ENV_TIMEOUT = "KREW_HARNESS_TIMEOUT"
ENV_KEEP_SANDBOX = "KREW_HARNESS_KEEP_SANDBOX"
ENV_SHORT = "KREW_HARNESS_SHORT"
ENV_SANDBOX_BASE = "KREW_HARNESS_SANDBOX_BASE"

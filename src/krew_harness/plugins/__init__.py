"""Plugin system for krew-harness.

Uses Pluggy for plugin discovery and hook management. Bundled contracts are
loaded first, then external plugins from the ``krew_harness`` entry-point
group.

    from krew_harness.plugins import get_tool_contract

    contract = get_tool_contract("krew")
"""

import contextlib
import importlib

import pluggy

from krew_harness.errors import ContractNotFoundError
from krew_harness.logging import get_logger
from krew_harness.models.contract import ToolContract
from krew_harness.plugins.hookspecs import ToolContractSpec

logger = get_logger(__name__)


# Default plugins bundled with krew-harness
DEFAULT_PLUGINS = ("krew_harness.plugins.bundled.krew",)


pm = pluggy.PluginManager("krew_harness")
pm.add_hookspecs(ToolContractSpec)

_initialized: bool = False
_registered_contracts: dict[str, ToolContract] = {}


def _load_default_plugins() -> None:
    """Load plugins bundled with krew-harness."""
    for plugin_path in DEFAULT_PLUGINS:
        module = importlib.import_module(plugin_path)
        if not pm.is_registered(module):
            pm.register(module, name=plugin_path)
        logger.debug(f"Loaded plugin: {plugin_path}")


def _load_external_plugins() -> None:
    """Discover and load external plugins via entry points."""
    num_loaded = pm.load_setuptools_entrypoints("krew_harness")
    if num_loaded > 0:
        logger.debug(f"Loaded {num_loaded} external plugin(s)")


def _register_contracts() -> None:
    global _registered_contracts
    _registered_contracts = {}

    for plugin_result in pm.hook.register_tool_contracts():
        for contract_data in plugin_result or []:
            contract = ToolContract.from_dict(contract_data)
            _registered_contracts[contract.name] = contract
            logger.debug(f"Registered tool contract: {contract.name}")


def initialize_plugins() -> None:
    """Initialize the plugin system.

    Idempotent: calling it again after the first call has no effect.
    """
    global _initialized

    if _initialized:
        return

    _load_default_plugins()
    _load_external_plugins()
    _register_contracts()

    _initialized = True
    logger.debug(f"Plugin system initialized with {len(_registered_contracts)} contract(s)")


def reset_plugins() -> None:
    """Reset the plugin system (mainly for testing)."""
    global _initialized, _registered_contracts

    for plugin in list(pm.get_plugins()):
        with contextlib.suppress(ValueError):
            pm.unregister(plugin)

    _registered_contracts = {}
    _initialized = False


def get_registered_contracts() -> dict[str, ToolContract]:
    """Get all registered tool contracts, keyed by name."""
    initialize_plugins()
    return dict(_registered_contracts)


def get_tool_contract(name: str) -> ToolContract:
    """Look up a tool contract by name.

    Raises:
        ContractNotFoundError: If no plugin registered the contract
    """
    contracts = get_registered_contracts()
    if name not in contracts:
        available = ", ".join(sorted(contracts)) or "none"
        raise ContractNotFoundError(f"Unknown tool contract: {name}. Available: {available}")
    return contracts[name]


__all__ = [
    "pm",
    "DEFAULT_PLUGINS",
    "initialize_plugins",
    "reset_plugins",
    "get_registered_contracts",
    "get_tool_contract",
]

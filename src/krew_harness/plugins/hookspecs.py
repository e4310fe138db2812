"""Hook specifications for krew-harness plugins.

Plugins describe the contract of a package manager under test: which
environment variables point it at a sandbox and where it keeps its state.

Example plugin implementation:

    from krew_harness import hookimpl

    @hookimpl
    def register_tool_contracts():
        return [
            {
                "name": "mytool",
                "binary_name": "mytool",
                "root_var": "MYTOOL_ROOT",
                "layout": {"install": "pkgs"},
                "plugin_prefix": "mytool-",
            }
        ]
"""

import pluggy

hookspec = pluggy.HookspecMarker("krew_harness")


class ToolContractSpec:
    """Hook specifications for tool contract plugins."""

    @hookspec
    def register_tool_contracts(self) -> list[dict]:  # type: ignore[empty-body]
        """Register the contracts of tools this plugin knows how to sandbox.

        Returns:
            List of dicts accepted by ToolContract.from_dict():
                - name: Contract identifier (required)
                - binary_name: Executable name on PATH
                - root_var: Variable selecting the tool's base directory
                - path_vars: Mapping of directory kind to variable name
                - layout: Mapping of directory kind to path relative to root
                - plugin_prefix: Prefix of installed plugin executables
                - extra_env: Constant variables for every invocation
                - description: Human-readable description
        """
        ...

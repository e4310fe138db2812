"""Bundled contract for krew, the kubectl plugin manager.

krew keeps all of its state below a single base directory selected by the
``KREW_ROOT`` environment variable (``~/.krew`` when unset):

    $KREW_ROOT/index/default/  default plugin index (a git checkout of krew-index)
    $KREW_ROOT/store/          unpacked plugin versions
    $KREW_ROOT/bin/            kubectl-<plugin> shims, must be on PATH
    $KREW_ROOT/receipts/       one receipt per installed plugin

Downloads are staged by krew itself and have no override variable, so the
download directory is only reserved in the sandbox layout. ``HOME`` is
overridden as well so kubectl and git never read the invoking user's files.

See: https://krew.sigs.k8s.io/docs/user-guide/
"""

from krew_harness import hookimpl


@hookimpl
def register_tool_contracts():
    return [
        {
            "name": "krew",
            "binary_name": "krew",
            "root_var": "KREW_ROOT",
            "layout": {
                "home": "home",
                "index": "index/default",
                "install": "store",
                "bin": "bin",
                "download": "downloads",
                "receipts": "receipts",
            },
            "plugin_prefix": "kubectl-",
            "description": "kubectl plugin manager",
        }
    ]

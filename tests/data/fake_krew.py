"""Stand-in for the krew binary used by the offline test suite.

Honours the same contract as krew: all state lives below $KREW_ROOT, the
default index is $KREW_ROOT/index/default, installed plugins get a
kubectl-<name> shim in $KREW_ROOT/bin and a receipt in $KREW_ROOT/receipts.
`update` copies the catalog shipped next to this file instead of cloning.
"""

import os
import shutil
import stat
import sys
from pathlib import Path

REMOTE_INDEX = Path(__file__).parent / "index"
INDEX_URI = "https://github.com/kubernetes-sigs/krew-index.git"


def _root() -> Path:
    root = os.environ.get("KREW_ROOT")
    if root:
        return Path(root)
    return Path(os.environ["HOME"]) / ".krew"


def _paths() -> dict[str, Path]:
    root = _root()
    return {
        "base": root,
        "index": root / "index" / "default",
        "install": root / "store",
        "bin": root / "bin",
        "receipts": root / "receipts",
        "download": root / "downloads",
    }


def _die(message: str) -> int:
    print(f"F1016 {message}", file=sys.stderr)
    return 1


def _read_manifest(path: Path) -> dict[str, str]:
    fields = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.strip().partition(":")
        if sep and key in ("name", "version", "shortDescription") and key not in fields:
            fields[key] = value.strip()
    return fields


def _catalog() -> dict[str, dict[str, str]] | None:
    plugins_dir = _paths()["index"] / "plugins"
    if not plugins_dir.is_dir():
        return None
    return {p.stem: _read_manifest(p) for p in sorted(plugins_dir.glob("*.yaml"))}


def _installed() -> list[str]:
    receipts = _paths()["receipts"]
    if not receipts.is_dir():
        return []
    return sorted(p.stem for p in receipts.glob("*.yaml"))


def cmd_help(args: list[str]) -> int:
    print("krew is the kubectl plugin manager.")
    print("Usage:\n  kubectl krew [command]")
    print("Available Commands:\n  help  info  install  list  search  uninstall  update  version")
    return 0


def cmd_version(args: list[str]) -> int:
    paths = _paths()
    rows = [
        ("OPTION", "VALUE"),
        ("GitTag", "v0.0.0-fake"),
        ("GitCommit", "0000000"),
        ("IndexURI", INDEX_URI),
        ("BasePath", str(paths["base"])),
        ("IndexPath", str(paths["index"])),
        ("InstallPath", str(paths["install"])),
        ("BinPath", str(paths["bin"])),
        ("DownloadPath", str(paths["download"])),
        ("IsPlugin", "false"),
        ("ExecutedVersion", "v0.0.0-fake"),
    ]
    for key, value in rows:
        print(f"{key:<18}{value}")
    return 0


def cmd_update(args: list[str]) -> int:
    index = _paths()["index"]
    index.mkdir(parents=True, exist_ok=True)
    shutil.copytree(REMOTE_INDEX, index, dirs_exist_ok=True)
    print("Updated the local copy of plugin index.")
    return 0


def cmd_search(args: list[str]) -> int:
    catalog = _catalog()
    if catalog is None:
        return _die("index is not initialized, run `kubectl krew update`")

    term = args[0] if args else ""
    installed = set(_installed())
    names = [n for n in catalog if term in n]
    names.sort(key=lambda n: (n != term, n))

    print(f"{'NAME':<16}{'DESCRIPTION':<48}INSTALLED")
    for name in names:
        description = catalog[name].get("shortDescription", "")
        print(f"{name:<16}{description:<48}{'yes' if name in installed else 'no'}")
    return 0


def cmd_info(args: list[str]) -> int:
    catalog = _catalog()
    if catalog is None:
        return _die("index is not initialized, run `kubectl krew update`")
    if len(args) != 1:
        return _die("accepts 1 arg(s)")
    if args[0] not in catalog:
        return _die(f'plugin "{args[0]}" not found')

    manifest = catalog[args[0]]
    print(f"NAME: {args[0]}")
    print(f"VERSION: {manifest.get('version', '')}")
    print(f"DESCRIPTION: {manifest.get('shortDescription', '')}")
    return 0


def cmd_install(args: list[str]) -> int:
    catalog = _catalog()
    if catalog is None:
        return _die("index is not initialized, run `kubectl krew update`")
    if not args:
        return _die("no plugins specified")

    paths = _paths()
    for name in args:
        if name not in catalog:
            return _die(f'plugin "{name}" does not exist in the plugin index')

        version = catalog[name].get("version", "v0.0.0")
        (paths["install"] / name / version).mkdir(parents=True, exist_ok=True)
        paths["receipts"].mkdir(parents=True, exist_ok=True)
        (paths["receipts"] / f"{name}.yaml").write_text(
            f"metadata:\n  name: {name}\nspec:\n  version: {version}\n", encoding="utf-8"
        )

        paths["bin"].mkdir(parents=True, exist_ok=True)
        shim = paths["bin"] / f"kubectl-{name}"
        shim.write_text(f'#!/bin/sh\necho "{name} {version}"\nexit 0\n', encoding="utf-8")
        shim.chmod(shim.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        print(f"Installed plugin: {name}")
    return 0


def cmd_uninstall(args: list[str]) -> int:
    paths = _paths()
    for name in args:
        if name not in _installed():
            return _die(f'plugin "{name}" is not installed')
        shutil.rmtree(paths["install"] / name, ignore_errors=True)
        (paths["receipts"] / f"{name}.yaml").unlink()
        (paths["bin"] / f"kubectl-{name}").unlink(missing_ok=True)
        print(f"Uninstalled plugin: {name}")
    return 0


def cmd_list(args: list[str]) -> int:
    print(f"{'PLUGIN':<16}VERSION")
    for name in _installed():
        receipt = _read_manifest(_paths()["receipts"] / f"{name}.yaml")
        print(f"{name:<16}{receipt.get('version', '')}")
    return 0


COMMANDS = {
    "help": cmd_help,
    "version": cmd_version,
    "update": cmd_update,
    "search": cmd_search,
    "info": cmd_info,
    "install": cmd_install,
    "uninstall": cmd_uninstall,
    "list": cmd_list,
}


def main(argv: list[str]) -> int:
    if not argv:
        return cmd_help([])
    command = COMMANDS.get(argv[0])
    if command is None:
        return _die(f'unknown command "{argv[0]}" for "krew"')
    return command(argv[1:])


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

"""Command-line interface for krew-harness."""

import shlex
import sys
from pathlib import Path

import click

from krew_harness.config import CONFIG_FILENAME
from krew_harness.console import console, error, success, warning
from krew_harness.errors import HarnessError
from krew_harness.fixtures.fetch import fetch_index_snapshot
from krew_harness.fixtures.index import IndexFixture, IndexSnapshot
from krew_harness.harness import KrewTest
from krew_harness.logging import get_logger, setup_logging
from krew_harness.sandbox.runner import CommandRunner
from krew_harness.sandbox.sandbox import Sandbox
from krew_harness.settings import HarnessSettings, generate_config_toml, load_settings

logger = get_logger(__name__)


class HarnessCLI:
    """Command-line orchestrator for krew-harness."""

    def __init__(self, settings: HarnessSettings):
        self.settings = settings

    def create_sandbox(self, with_index: bool) -> Sandbox:
        """Create a sandbox for the configured tool, optionally seeded."""
        sandbox = Sandbox.create(self.settings.contract(), self.settings.sandbox_config())
        if with_index:
            try:
                IndexFixture(IndexSnapshot(self.settings.index_snapshot)).seed(sandbox)
            except HarnessError:
                sandbox.teardown()
                raise
        return sandbox

    def exec_tool(self, args: list[str], with_index: bool, keep: bool) -> int:
        """Run the tool under test once in a throwaway sandbox.

        Returns:
            The tool's exit code (1 if it could not be started)
        """
        binary = self.settings.resolve_binary()
        if binary is None:
            raise HarnessError(f"{self.settings.tool} not found; set KREW_HARNESS_BINARY")

        sandbox = self.create_sandbox(with_index)
        try:
            test = KrewTest(sandbox, binary, runner=CommandRunner(), timeout=self.settings.timeout)
            result = test.krew(*args).run()
        finally:
            if keep:
                logger.info(f"Sandbox kept at {sandbox.root}")
            else:
                sandbox.teardown()

        if result.stdout:
            click.echo(result.stdout, nl=False)
        if result.stderr:
            click.echo(result.stderr, nl=False, err=True)

        if result.success:
            return 0
        if result.exit_code is None:
            error(str(result.error))
            return 1
        return result.exit_code

    def print_env(self, with_index: bool) -> Sandbox:
        """Create a kept sandbox and print shell exports for it."""
        sandbox = self.create_sandbox(with_index)
        binary = self.settings.resolve_binary()
        test = KrewTest(sandbox, binary or Path(self.settings.tool))

        for name, value in sorted(test.environment.items()):
            click.echo(f"export {name}={shlex.quote(value)}")
        return sandbox


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output (DEBUG level)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Show only warnings and errors",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Explicit log level (overrides -v/-q)",
)
@click.option(
    "--show-output",
    is_flag=True,
    help="Echo the output of every command the harness runs to stderr",
)
@click.option(
    "-C",
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Directory holding krew-harness.toml and .env (default: cwd)",
)
@click.pass_context
def cli(ctx, verbose, quiet, log_level, show_output, project_root):
    """Sandboxed end-to-end testing for command-line package managers."""
    if sum([verbose, quiet, log_level is not None]) > 1:
        raise click.UsageError("--verbose, --quiet, and --log-level are mutually exclusive")

    setup_logging(verbose=verbose, quiet=quiet, log_level=log_level, show_output=show_output)

    ctx.ensure_object(dict)
    ctx.obj["project_root"] = project_root or Path.cwd()


def _settings(ctx: click.Context) -> HarnessSettings:
    return load_settings(ctx.obj["project_root"])


@cli.command(name="list-tools")
@click.pass_context
def list_tools(ctx):
    """List registered tool contracts."""
    from krew_harness.plugins import get_registered_contracts

    contracts = get_registered_contracts()
    if not contracts:
        click.echo("No tool contracts registered.")
        raise SystemExit(1)

    settings = _settings(ctx)
    for name, contract in sorted(contracts.items()):
        marker = click.style(" [selected]", fg="green") if name == settings.tool else ""
        click.echo(f"  {click.style(name, bold=True)}{marker}")
        if contract.description:
            click.echo(f"    {contract.description}")
        click.echo(f"    Binary: {contract.binary_name}")
        if contract.root_var:
            click.echo(f"    Root variable: {contract.root_var}")
        click.echo("")


@cli.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx, force):
    """Write a default krew-harness.toml."""
    path = ctx.obj["project_root"] / CONFIG_FILENAME
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")

    path.write_text(generate_config_toml(_settings(ctx)), encoding="utf-8")
    success(f"Wrote {path}")


@cli.command(name="fetch-index")
@click.option("--uri", default=None, help="Index repository to clone (default: from settings)")
@click.option(
    "--dest",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Snapshot archive to write (default: from settings)",
)
@click.pass_context
def fetch_index(ctx, uri, dest):
    """Clone the plugin index into the snapshot used by seeded tests."""
    settings = _settings(ctx)
    uri = uri or settings.index_uri
    dest = dest or settings.index_snapshot

    if dest.is_dir():
        raise click.ClickException(f"{dest} is a directory; pass --dest with an archive path")

    def fail(message: str):
        raise click.ClickException(message)

    try:
        fetch_index_snapshot(uri, dest, runner=CommandRunner(fail=fail))
    except HarnessError as e:
        raise click.ClickException(str(e)) from e

    success(f"Index snapshot written to {dest}")


@cli.command(name="env")
@click.option("--with-index", is_flag=True, help="Seed the sandbox from the index snapshot")
@click.pass_context
def env(ctx, with_index):
    """Create a sandbox and print the environment that points the tool at it.

    The sandbox is kept; remove it when done:

        eval "$(krew-harness env --with-index)"
    """
    try:
        sandbox = HarnessCLI(_settings(ctx)).print_env(with_index)
    except HarnessError as e:
        raise click.ClickException(str(e)) from e

    warning(f"Sandbox kept at {sandbox.root}; remove it when done")


@cli.command(
    name="exec",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--with-index", is_flag=True, help="Seed the sandbox from the index snapshot")
@click.option("--keep", is_flag=True, help="Keep the sandbox after the command finishes")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def exec_(ctx, with_index, keep, args):
    """Run the tool under test in a throwaway sandbox.

    Example:
        krew-harness exec --with-index -- search konfig
    """
    try:
        exit_code = HarnessCLI(_settings(ctx)).exec_tool(list(args), with_index, keep)
    except HarnessError as e:
        raise click.ClickException(str(e)) from e

    raise SystemExit(exit_code)


@cli.command(name="paths")
@click.pass_context
def paths(ctx):
    """Show the sandbox layout of the configured tool."""
    from rich.table import Table

    from krew_harness.models.contract import PathKind

    contract = _settings(ctx).contract()
    table = Table(title=f"{contract.name} sandbox layout")
    table.add_column("Kind")
    table.add_column("Path below sandbox root")
    table.add_column("Variable")
    for kind in PathKind:
        var = contract.path_vars.get(kind, "HOME" if kind is PathKind.HOME else "")
        table.add_row(kind.value, contract.layout[kind] or ".", var)
    console.print(table)


def main():
    """Entry point for krew-harness command."""
    cli(obj={})


if __name__ == "__main__":
    sys.exit(main())

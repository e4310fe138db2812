"""Logging for krew-harness.

Harness messages (sandbox lifecycle, seeding, command lines) go to the
``krew_harness`` logger. What the tool under test prints goes to the
``krew_harness.output`` child logger instead, one record per line, so a
noisy install can be shown or hidden without touching the harness level:

    setup_logging(verbose=True, show_output=True)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.logging import RichHandler

from krew_harness.console import err_console

if TYPE_CHECKING:
    from krew_harness.models.command import CommandResult

LOGGER_NAME = "krew_harness"
OUTPUT_LOGGER_NAME = f"{LOGGER_NAME}.output"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _resolve_level(verbose: bool, quiet: bool, log_level: str | None) -> int:
    if log_level:
        try:
            return LEVELS[log_level.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {log_level}") from None
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_level: str | None = None,
    show_output: bool = False,
) -> None:
    """Send harness logs to stderr through Rich.

    stdout is left to the tool under test, so ``krew-harness exec`` output
    can be piped.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Show only WARNING and above
        log_level: Explicit log level (overrides verbose/quiet)
        show_output: Echo the captured output of every command the harness runs
    """
    level = _resolve_level(verbose, quiet, log_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    # Filtering happens on the loggers so the output child can differ
    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    logger.addHandler(handler)
    logger.propagate = False

    output_logger = logging.getLogger(OUTPUT_LOGGER_NAME)
    output_logger.setLevel(logging.INFO if show_output else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the krew_harness namespace.

    Args:
        name: Module name (typically __name__)
    """
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def log_command_output(result: CommandResult) -> None:
    """Emit a result's captured streams on the output logger, line by line."""
    logger = logging.getLogger(OUTPUT_LOGGER_NAME)
    if not logger.isEnabledFor(logging.INFO):
        return

    program = Path(result.argv[0]).name if result.argv else "?"
    streams = [("output", result.stdout)] if result.merged else [
        ("stdout", result.stdout),
        ("stderr", result.stderr),
    ]
    for stream, text in streams:
        for line in text.splitlines():
            logger.info(f"{program} {stream}| {line}")

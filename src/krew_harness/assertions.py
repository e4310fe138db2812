"""Helpers for checking captured command output."""

from __future__ import annotations

import re
from collections.abc import Iterable


def lines(output: str) -> list[str]:
    """Split output into lines after trimming trailing whitespace.

    Returns an empty list for output that is blank.
    """
    trimmed = output.rstrip(" \t\n")
    if not trimmed:
        return []
    return trimmed.split("\n")


def _excerpt(output: str) -> str:
    return output.rstrip() or "<empty>"


def assert_contains(output: str, needle: str) -> None:
    if needle not in output:
        raise AssertionError(f"Expected {needle!r} in output:\n{_excerpt(output)}")


def assert_not_contains(output: str, needle: str) -> None:
    if needle in output:
        raise AssertionError(f"Did not expect {needle!r} in output:\n{_excerpt(output)}")


def assert_matches(output: str, patterns: Iterable[str]) -> None:
    """Check that every regex in ``patterns`` matches somewhere in ``output``.

    All missing patterns are reported together.
    """
    missing = [p for p in patterns if re.search(p, output) is None]
    if missing:
        listing = "\n".join(f"  {p}" for p in missing)
        raise AssertionError(f"Patterns not found in output:\n{listing}\noutput:\n{_excerpt(output)}")


def assert_min_lines(output: str, minimum: int, header: bool = False) -> list[str]:
    """Check that output has at least ``minimum`` entries.

    Args:
        output: Captured output
        minimum: Required number of entries
        header: Whether the first line is a header that does not count

    Returns:
        The output's lines, header included
    """
    found = lines(output)
    entries = len(found) - 1 if header and found else len(found)
    if entries < minimum:
        raise AssertionError(
            f"Expected at least {minimum} entries, found {entries}:\n{_excerpt(output)}"
        )
    return found

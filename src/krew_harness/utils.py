"""Utility functions for krew-harness."""

from __future__ import annotations

from typing import Any

from expandvars import expandvars


def expandvars_dict(data: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Recursively expand all string values in a dictionary using expandvars."""

    def expand_item(item: Any) -> Any:
        if isinstance(item, str):
            return expandvars(item) if environ is None else expandvars(item, environ=environ)
        if isinstance(item, dict):
            return expandvars_dict(item, environ)
        if isinstance(item, list):
            return [expand_item(i) for i in item]
        return item

    return {key: expand_item(value) for key, value in data.items()}


def parse_bool(value: str | bool | None) -> bool:
    """Interpret common truthy spellings from config files and env vars."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")

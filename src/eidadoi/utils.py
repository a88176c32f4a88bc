"""Utility helpers for validating client query parameters."""

from __future__ import annotations

import re
from collections.abc import Iterable

NETWORK_PARAMETER = re.compile(r"([0-9a-z_?*]{1,7},)*([0-9a-z_?*]{1,7})", flags=re.IGNORECASE)
ALLOWED_PARAMETERS = ("network",)


class QueryValidationError(ValueError):
    """Raised when a client query carries unsupported or malformed parameters."""


def collapse_parameters(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Merge repeated query keys into one comma-joined value per key."""
    merged: dict[str, list[str]] = {}
    for key, value in items:
        merged.setdefault(key, []).append(value)
    return {key: ",".join(values) for key, values in merged.items()}


def validate_parameters(params: dict[str, str]) -> None:
    """Reject unknown keys and network values outside the pattern grammar."""
    for key, value in params.items():
        if key not in ALLOWED_PARAMETERS:
            raise QueryValidationError(f"Key {key} is not supported.")
        if not NETWORK_PARAMETER.fullmatch(value):
            raise QueryValidationError(f"Key {key} is not valid.")


def split_patterns(value: str | None) -> set[str]:
    """Turn a comma-separated network value into a pattern set."""
    if not value:
        return set()
    return {part for part in value.split(",") if part}

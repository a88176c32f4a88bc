"""Wildcard matching and filtering of cached DOI records."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from eidadoi.models import DOIRecord


@dataclass(slots=True, frozen=True)
class WildcardMatcher:
    """Anchored, case-insensitive matcher for a ``?``/``*`` network pattern."""

    pattern: str
    regex: re.Pattern[str]

    def test(self, code: str) -> bool:
        return self.regex.fullmatch(code) is not None


def compile_pattern(pattern: str) -> WildcardMatcher:
    """Compile a wildcard pattern; every other character is matched literally."""
    parts = []
    for char in pattern:
        if char == "?":
            parts.append(".")
        elif char == "*":
            parts.append(".*")
        else:
            parts.append(re.escape(char))
    regex = re.compile("".join(parts), flags=re.IGNORECASE | re.DOTALL)
    return WildcardMatcher(pattern=pattern, regex=regex)


def filter_records(
    records: Sequence[DOIRecord], patterns: Iterable[str] | None = None
) -> list[DOIRecord]:
    """Return records whose network matches any pattern, in cache order.

    With no patterns the whole cache is returned.
    """
    matchers = [compile_pattern(pattern) for pattern in set(patterns or ())]
    if not matchers:
        return list(records)
    return [
        record
        for record in records
        if any(matcher.test(record.network) for matcher in matchers)
    ]

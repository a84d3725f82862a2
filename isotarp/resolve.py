"""Resolve user-supplied test patterns against the available test names."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

_SEPARATOR = "::"


def _is_wildcard(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


def _compile(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def _match_by_path(available: Sequence[str], pattern: str) -> list[str]:
    regex = _compile(pattern)
    return [test for test in available if regex.fullmatch(test)]


def _match_by_name(available: Sequence[str], pattern: str) -> list[str]:
    regex = _compile(pattern)
    return [
        test for test in available if regex.fullmatch(test.split(_SEPARATOR)[-1])
    ]


def resolve_test_patterns(
    available_tests: Sequence[str], patterns: Iterable[str]
) -> tuple[list[str], list[str]]:
    """Return the sorted, deduplicated matching tests and the patterns that matched nothing.

    Patterns with ``::`` are matched against the full test path, others against
    the final name segment; ``*`` and ``?`` act as wildcards.
    """
    exact_paths: list[str] = []
    exact_names: list[str] = []
    path_wildcards: list[str] = []
    name_wildcards: list[str] = []
    for pattern in patterns:
        has_path = _SEPARATOR in pattern
        if _is_wildcard(pattern):
            (path_wildcards if has_path else name_wildcards).append(pattern)
        else:
            (exact_paths if has_path else exact_names).append(pattern)

    selected: set[str] = set()
    invalid: list[str] = []

    available_set = set(available_tests)
    for pattern in exact_paths:
        if pattern in available_set:
            selected.add(pattern)
        else:
            invalid.append(pattern)

    for group, matcher in (
        (exact_names, _match_by_name),
        (path_wildcards, _match_by_path),
        (name_wildcards, _match_by_name),
    ):
        for pattern in group:
            matches = matcher(available_tests, pattern)
            if matches:
                selected.update(matches)
            else:
                invalid.append(pattern)

    return sorted(selected), invalid
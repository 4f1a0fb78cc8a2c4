"""Helpers over loosely-typed workflow documents (nested JSON values)."""

from __future__ import annotations

import math
import re
from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from flowlint.models.graph import JSONValue

EXPRESSION_MARKER = "{{"

_CASE_INSENSITIVE_PREFIX = "(?i)"


def is_expression(value: object) -> bool:
    """True for strings evaluated at runtime by the workflow engine."""
    return isinstance(value, str) and EXPRESSION_MARKER in value


def collect_strings(value: JSONValue) -> list[str]:
    """Every string leaf inside *value*, in document order."""
    out: list[str] = []
    stack: list[Any] = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            out.append(current)
        elif isinstance(current, Mapping):
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list | tuple):
            stack.extend(reversed(current))
    return out


def contains_candidate(value: JSONValue, candidates: Sequence[str]) -> bool:
    """True if any key or string leaf in *value* mentions a candidate.

    Matching is a case-insensitive substring search; candidates are literal
    field names, not patterns.
    """
    if not value or not candidates:
        return False

    pattern = re.compile("|".join(re.escape(c) for c in candidates), re.IGNORECASE)
    queue: deque[Any] = deque([value])
    while queue:
        current = queue.popleft()
        if isinstance(current, str):
            if pattern.search(current):
                return True
        elif isinstance(current, Mapping):
            for key, child in current.items():
                if pattern.search(str(key)):
                    return True
                queue.append(child)
        elif isinstance(current, list | tuple):
            queue.extend(current)
    return False


def to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a denylist pattern; a leading ``(?i)`` becomes IGNORECASE."""
    flags = 0
    if pattern.startswith(_CASE_INSENSITIVE_PREFIX):
        pattern = pattern[len(_CASE_INSENSITIVE_PREFIX):]
        flags |= re.IGNORECASE
    return re.compile(pattern, flags)


def parse_number(value: object) -> float | None:
    """Numeric value of a number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        # float() accepts digit separators such as "1_000"
        if "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def read_number(source: JSONValue, paths: Iterable[str]) -> float | None:
    """First numeric value found at one of the dotted *paths*."""
    for path in paths:
        current: Any = source
        for key in path.split("."):
            if not isinstance(current, Mapping):
                current = None
                break
            current = current.get(key)
        number = parse_number(current)
        if number is not None:
            return number
    return None


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def flatten_connections(value: Any) -> list[Mapping[str, Any]]:
    """Flatten arbitrarily nested connection arrays to ``{"node": ...}`` links.

    Null and empty entries are dropped.
    """
    if not value:
        return []
    if isinstance(value, list | tuple):
        links: list[Mapping[str, Any]] = []
        for entry in value:
            links.extend(flatten_connections(entry))
        return links
    if isinstance(value, Mapping) and "node" in value:
        return [value]
    return []

from __future__ import annotations

from typing import Any

SEPARATOR = "_"


def join_key(prefix: str, key: str) -> str:
    if not prefix:
        return key
    return f"{prefix}{SEPARATOR}{key}"


def numeric_value(value: Any) -> float | None:
    """Return value as a float if it is a number or a bool, else None."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return None


def flatten(prefix: str, node: Any, into: dict[str, float]) -> dict[str, float]:
    """Walk a decoded JSON tree and collect every numeric leaf into ``into``.

    Nested objects contribute their keys joined with ``_``. Strings, arrays and
    nulls carry no metric and are dropped. Colliding keys from different
    branches overwrite each other, last write wins.
    """
    if not isinstance(node, dict):
        return into
    for key, value in node.items():
        name = join_key(prefix, str(key))
        number = numeric_value(value)
        if number is not None:
            into[name] = number
        elif isinstance(value, dict):
            flatten(name, value, into)
    return into

"""Typed access to the loosely-typed argument map of a tool call.

The model may omit optional fields or send them with the wrong JSON type.
Every accessor here maps "missing" and "wrong type" to ``None`` so handlers
never branch on ``isinstance`` themselves.
"""

from collections.abc import Mapping
from typing import Any


def get_optional_string(arguments: Mapping[str, Any], key: str) -> str | None:
    """Return ``arguments[key]`` if it is a non-blank string, else ``None``."""
    value = arguments.get(key)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None

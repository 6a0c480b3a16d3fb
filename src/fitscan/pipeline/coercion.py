"""Typed reads from parsed JSON nodes.

This is the only module that looks inside raw node trees. Every reader
takes a node, a field name and a default, and returns either a value of
the requested type or the default. Readers never raise: a missing field,
a null, or a value of the wrong kind all yield the default.

Numbers may arrive quoted (`"150"`), so numeric readers accept numeric
strings. Booleans are stricter: only an explicit JSON `true` counts.
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import Any

Node = Mapping[str, Any]


def _field(node: object, name: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(name)
    return None


def as_number(value: object) -> float | None:
    """Return `value` as a finite float, or None if it is not numeric."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, int | float):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().replace(",", "."))
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def read_float(node: object, name: str, default: float = 0.0) -> float:
    number = as_number(_field(node, name))
    return default if number is None else number


def read_optional_float(node: object, name: str) -> float | None:
    return as_number(_field(node, name))


def read_int(node: object, name: str, default: int = 0) -> int:
    number = as_number(_field(node, name))
    return default if number is None else round(number)


def read_optional_int(node: object, name: str) -> int | None:
    number = as_number(_field(node, name))
    return None if number is None else round(number)


def read_str(node: object, name: str, default: str = "") -> str:
    value = _field(node, name)
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return default


def read_optional_str(node: object, name: str) -> str | None:
    value = read_str(node, name, "")
    return value or None


def read_bool(node: object, name: str, default: bool = False) -> bool:
    """Return True for an explicit JSON `true`, otherwise `default`."""
    if _field(node, name) is True:
        return True
    return default


def read_object(node: object, name: str) -> Node | None:
    value = _field(node, name)
    return value if isinstance(value, Mapping) else None


def read_list(node: object, name: str) -> tuple[Any, ...]:
    value = _field(node, name)
    return tuple(value) if isinstance(value, list | tuple) else ()


def read_objects(node: object, name: str) -> tuple[Node, ...]:
    """Read a list of objects; a lone object is treated as a list of one."""
    value = _field(node, name)
    if isinstance(value, Mapping):
        return (value,)
    return tuple(v for v in read_list(node, name) if isinstance(v, Mapping))


def read_str_list(node: object, name: str) -> tuple[str, ...]:
    """Read a list of strings, stringifying numbers and dropping the rest."""
    items = []
    for value in read_list(node, name):
        if isinstance(value, str):
            if value.strip():
                items.append(value)
        elif isinstance(value, int | float) and not isinstance(value, bool):
            items.append(str(value))
    return tuple(items)

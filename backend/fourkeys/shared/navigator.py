"""Type-checked traversal of decoded JSON trees.

A decoded payload is a tree whose nodes are mappings from string keys to
further nodes, or scalars (str, int, float, bool, None). Walking it with
chained subscripts breaks on the first unexpected shape, so lookups go
through two helpers instead:

* ``lookup`` returns ``(value, found)`` and never raises. Use it where an
  absent path just means "try the next candidate".
* ``require`` returns the value or raises a ``PathError`` that names the
  key and the partial path where the walk stopped.

The final value is checked against a requested leaf type. JSON numbers do
not say whether they are integral, so asking for ``int`` when the document
held ``1.5`` raises ``NumericTypeMismatch`` rather than a plain
``TypeMismatch``; callers can catch it and coerce.
"""

from collections.abc import Mapping
from typing import Any, TypeVar, Union

JSONValue = Union[Mapping[str, "JSONValue"], list, str, int, float, bool, None]

T = TypeVar("T")

_ZERO: dict[type, Any] = {str: "", int: 0, float: 0.0, bool: False}


class PathError(Exception):
    pass


class KeyNotFound(PathError):
    def __init__(self, key: str, path: tuple[str, ...]):
        self.key = key
        self.path = path
        super().__init__(self.describe(key, ".".join(path) if path else "root"))

    @staticmethod
    def describe(key: str, where: str) -> str:
        return f"key {key} not found in {where}"


class NotAMapping(KeyNotFound):
    """The walk reached a scalar while keys were still left to consume."""

    @staticmethod
    def describe(key: str, where: str) -> str:
        return f"value at {where} is not a mapping, cannot look up key {key}"


class TypeMismatch(PathError):
    def __init__(self, path: tuple[str, ...], expected: type, value: Any):
        self.path = path
        self.expected = expected
        self.value = value
        super().__init__(f"value {value} is not of type {expected.__name__}")


class NumericTypeMismatch(TypeMismatch):
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(value: Any, expected: type[T], path: tuple[str, ...]) -> T:
    if expected is float:
        if _is_number(value):
            return float(value)  # type: ignore[return-value]
    elif expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value  # type: ignore[return-value]
        if isinstance(value, float):
            raise NumericTypeMismatch(path, expected, value)
    elif expected is bool:
        if isinstance(value, bool):
            return value  # type: ignore[return-value]
    elif expected is Mapping or expected is dict:
        if isinstance(value, Mapping):
            return value  # type: ignore[return-value]
    elif isinstance(value, expected):
        return value

    raise TypeMismatch(path, expected, value)


def require(tree: JSONValue, *keys: str, expect: type[T] = str) -> T:
    """Walk ``keys`` through ``tree`` and return the leaf as ``expect``."""
    node: JSONValue = tree
    for i, key in enumerate(keys):
        if not isinstance(node, Mapping):
            raise NotAMapping(key, keys[:i])
        if key not in node:
            raise KeyNotFound(key, keys[:i])
        node = node[key]
    return _coerce(node, expect, keys)


def lookup(tree: JSONValue, *keys: str, expect: type[T] = str) -> tuple[T, bool]:
    """Like ``require`` but reports failure as ``(zero value, False)``."""
    try:
        return require(tree, *keys, expect=expect), True
    except PathError:
        return _ZERO.get(expect), False

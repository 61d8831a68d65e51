"""Raw-value helpers shared by nodes, propagation and the mutation adapter."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from stateify import _arena

if TYPE_CHECKING:
    from stateify.node import Node

_TEXT = (str, bytes, bytearray)


class _Undefined:
    """Marker for "no value at this path" — distinct from None."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()


def is_object(value) -> bool:
    """True for containers that nodes can descend into."""
    return isinstance(value, (Mapping, Sequence)) and not isinstance(value, _TEXT)


def same(a, b) -> bool:
    """Strict equality: identity for containers, typed value equality for leaves."""
    if a is b:
        return True
    if is_object(a) or is_object(b):
        return False
    return type(a) is type(b) and a == b


def typeof(value) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, complex)):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def lookup(container, key):
    """Read container[key], or UNDEFINED when the path does not resolve."""
    if isinstance(container, Mapping):
        return container.get(key, UNDEFINED)
    if is_object(container):
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(container):
            return container[key]
    return UNDEFINED


def container_of(node: Node):
    """The raw object that holds node's value (the holder dict for roots)."""
    holder = _arena.holders.get(node._id)
    if holder is not None:
        return holder
    return value_of(_arena.parents[node._id])


def value_of(node: Node):
    """Current raw value at node's path. Does not register a dependency."""
    return lookup(container_of(node), _arena.keys[node._id])


def own_keys(value) -> list:
    if isinstance(value, Mapping):
        return list(value)
    if is_object(value):
        return list(range(len(value)))
    return []

"""Public entry points — wrap raw values, unwrap nodes, release roots."""

from __future__ import annotations

import json
from typing import Any

from stateify import _arena
from stateify._values import UNDEFINED, is_object
from stateify.derived import derive, dispose, is_derived
from stateify.node import Node, new_root


def wrap(value: Any) -> Node:
    """Wrap a raw value (or a zero-argument callback) in a node.

    Nodes are unwrapped first, so wrapping never nests. A callable becomes
    a derived node. A container is wrapped once: wrapping the same object
    again returns the same root, as long as that root still holds it.

    Usage:
        data = wrap({"drinks": ["coffee", "tea", "milk"]})
        data.add_event_listener("change", lambda e: print(e.detail.key))
        data["drinks"].append("water")   # prints 'drinks'
    """
    value = unwrap(value)
    if callable(value):
        return derive(value)
    if not is_object(value):
        return new_root(value)

    entry = _arena.by_container.get(id(value))
    if entry is not None:
        root = entry[1]
        holder = _arena.holders.get(root._id, {})
        if holder.get(_arena.ROOT_KEY, UNDEFINED) is value:
            return root
    root = new_root(value)
    _arena.by_container[id(value)] = (value, root)
    return root


def unwrap(value: Any) -> Any:
    """The raw value behind a node, or value itself if it is not a node."""
    if isinstance(value, Node):
        return value._raw()
    return value


def is_wrapped(value: Any) -> bool:
    return isinstance(value, Node)


def release(value: Any) -> int:
    """Evict the root group owning value (a node or a wrapped container).

    Derived roots stop recomputing. Handles into the group must not be
    used afterwards. Returns the number of nodes evicted.
    """
    if isinstance(value, Node):
        root = _arena.roots.get(value._id)
    else:
        entry = _arena.by_container.get(id(value))
        root = entry[1] if entry is not None and entry[0] is value else None
    if root is None:
        return 0
    if is_derived(root):
        dispose(root)
    return _arena.evict(root._id)


def dumps(value: Any, **kwargs: Any) -> str:
    """json.dumps over the raw tree; nodes serialize exactly like their values."""
    fallback = kwargs.pop("default", None)

    def _default(obj: Any) -> Any:
        if isinstance(obj, Node):
            return obj._raw()
        if obj is UNDEFINED:
            return None
        if fallback is not None:
            return fallback(obj)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    return json.dumps(value, default=_default, **kwargs)

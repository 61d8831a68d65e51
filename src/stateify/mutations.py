"""Mutation adapter — in-place container methods that report per-key changes.

Calling a mutating method (list.sort, dict.update, ...) through a node runs
it on the real container, then diffs snapshots taken before and after.
Every changed key except the last gets a local, non-bubbling notification
on its child node; the last gets a full, bubbling one whose detail names
the container node as its source (key = the container's own key) while
carrying that element's value and old value. A single method call
therefore produces exactly one bubbled event per root however many keys
it touched, and none at all when nothing changed.

Which methods count as mutating is configurable per container type:

    from collections import deque
    register_mutators(deque, "append", "appendleft", "pop", "popleft")
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from stateify._values import UNDEFINED, is_object, same
from stateify.propagation import notify

if TYPE_CHECKING:
    from stateify.node import Node

_mutators: dict[type, frozenset[str]] = {
    list: frozenset(
        {"append", "extend", "insert", "pop", "remove", "clear", "sort", "reverse"}
    ),
    dict: frozenset({"update", "pop", "popitem", "clear", "setdefault"}),
}


def register_mutators(cls: type, *names: str) -> None:
    """Declare names as in-place mutating methods for instances of cls."""
    _mutators[cls] = _mutators.get(cls, frozenset()) | frozenset(names)


def mutating_methods(value) -> frozenset[str]:
    """Names routed through the adapter for value (empty for leaves)."""
    names: frozenset[str] = frozenset()
    for cls, registered in _mutators.items():
        if isinstance(value, cls):
            names |= registered
    return names


def is_mutator(value, name: str) -> bool:
    return name in mutating_methods(value)


def _snapshot(container) -> dict:
    if isinstance(container, Mapping):
        return dict(container)
    return dict(enumerate(container))


def changed_keys(before: dict, after: dict) -> list:
    """Keys whose value differs, including keys present on one side only."""
    ordered = list(before) + [key for key in after if key not in before]
    return [
        key
        for key in ordered
        if not same(before.get(key, UNDEFINED), after.get(key, UNDEFINED))
    ]


def call_mutator(node: Node, name: str, args: tuple, kwargs: dict) -> Any:
    """Invoke container.name(*args, **kwargs) on node's value and report the diff."""
    container = node._raw()
    method = getattr(container, name)
    if not is_object(container):
        return method(*args, **kwargs)

    before = _snapshot(container)
    result = method(*args, **kwargs)
    after = _snapshot(container)

    changes = changed_keys(before, after)
    if not changes:
        return result
    *rest, last = changes
    for key in rest:
        child = node._child(key)
        notify(child, (after.get(key, UNDEFINED), before.get(key, UNDEFINED)), bubble=False)
    child = node._child(last)
    notify(
        child,
        (after.get(last, UNDEFINED), before.get(last, UNDEFINED)),
        report_as=node,
    )
    return result

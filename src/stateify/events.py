"""Typed events and per-node listener lists.

Each node owns a listener list per event type ("change", "valuechange",
"propertychange", or any custom type). Subscribing returns a disposer,
so callers can tear down without keeping a reference to the handler.

One logical mutation shares a single ChangeDetail across every event it
produces; calling stop_propagation() on it halts further bubbling for
that mutation only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from stateify import _arena

if TYPE_CHECKING:
    from stateify.node import Node

Disposer = Callable[[], None]
Listener = Callable[["Event"], None]


class ChangeDetail:
    """Shared payload for every event one mutation produces."""

    __slots__ = ("value", "old_value", "source", "parent", "key", "_stopped")

    def __init__(self, value, old_value, source: Node, parent: Node | None, key) -> None:
        self.value = value
        self.old_value = old_value
        self.source = source
        self.parent = parent
        self.key = key
        self._stopped = False

    def stop_propagation(self) -> None:
        self._stopped = True

    @property
    def propagation_stopped(self) -> bool:
        return self._stopped

    def __repr__(self) -> str:
        return (
            f"ChangeDetail(value={self.value!r}, old_value={self.old_value!r}, "
            f"key={self.key!r})"
        )


class Event:
    """An event delivered to a node's listeners.

    target is filled in on dispatch with the node whose listeners are running.
    """

    __slots__ = ("type", "detail", "target")

    def __init__(self, type: str, detail=None) -> None:
        self.type = type
        self.detail = detail
        self.target: Node | None = None

    def __repr__(self) -> str:
        return f"Event({self.type!r}, detail={self.detail!r})"


def subscribe(node: Node, type: str, listener: Listener) -> Disposer:
    """Register listener for type on node. Returns a function that removes it."""
    _arena.listeners[node._id].setdefault(type, []).append(listener)

    def _unsubscribe() -> None:
        unsubscribe(node, type, listener)

    return _unsubscribe


def unsubscribe(node: Node, type: str, listener: Listener) -> None:
    table = _arena.listeners.get(node._id)
    if not table or type not in table:
        return
    try:
        table[type].remove(listener)
    except ValueError:
        pass  # already removed


def emit(node: Node, event: Event) -> None:
    """Deliver event to node's listeners for event.type, in subscription order."""
    table = _arena.listeners.get(node._id)
    if not table:
        return
    handlers = table.get(event.type)
    if not handlers:
        return
    event.target = node
    # Snapshot — listeners may unsubscribe (or resubscribe) while running.
    for handler in list(handlers):
        handler(event)

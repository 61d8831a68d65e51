"""Nodes — addressable handles over one (parent, key) path in a value tree.

A node never stores a value. Reading one walks the parent chain down from
the root's holder; writing one stores into the raw container in place,
so every holder of the raw data sees the change. Nodes for paths through
missing objects are "free" and read as UNDEFINED; they become live again
as soon as an ancestor is set to an object containing the path.

Python has no transparent property interception, so access is explicit:

    state = wrap({"drinks": ["coffee", "tea"]})
    first = state["drinks"][0]      # child node (identity-stable)
    first.get()                     # 'coffee'
    state["drinks"][0] = "water"    # same as first.set("water")
    state["drinks"].append("milk")  # routed through the mutation adapter
    first.upper()                   # raw str method, bound to the value

Operators are not overloaded; use get(), as_string() or as_number().
Node equality and hashing are by identity.

All state lives in _arena — instances are thin handles holding an _id.
"""

from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from typing import Any, Iterator

from stateify import _arena
from stateify._tracking import track
from stateify._values import (
    UNDEFINED,
    container_of,
    is_object,
    lookup,
    own_keys,
    typeof,
    value_of,
)
from stateify.errors import ReadOnlyError
from stateify.events import Disposer, Event, Listener, emit, subscribe, unsubscribe
from stateify.mutations import call_mutator, is_mutator
from stateify.propagation import notify


class Node:
    """Handle for one path. Obtain nodes through wrap() or child access."""

    __slots__ = ("_id",)

    def __init__(self, parent: Node | None, key: Any, *, holder: dict | None = None) -> None:
        self._id = _arena.new_id()
        _arena.parents[self._id] = parent
        _arena.keys[self._id] = key
        _arena.children[self._id] = {}
        _arena.listeners[self._id] = {}
        if parent is None:
            _arena.holders[self._id] = {} if holder is None else holder
            _arena.roots[self._id] = self
            _arena.depths[self._id] = 0
            _arena.groups[self._id] = [self]
        else:
            root = _arena.roots[parent._id]
            _arena.roots[self._id] = root
            _arena.depths[self._id] = _arena.depths[parent._id] + 1
            _arena.groups[root._id].append(self)
        _arena.cached_values[self._id] = value_of(self)

    # --- Structure (untracked) ---

    @property
    def parent(self) -> Node | None:
        return _arena.parents[self._id]

    @property
    def key(self) -> Any:
        """The key within the parent's value; None for a root."""
        if _arena.parents[self._id] is None:
            return None
        return _arena.keys[self._id]

    @property
    def root(self) -> Node:
        return _arena.roots[self._id]

    @property
    def path(self) -> tuple:
        keys = []
        node = self
        while _arena.parents[node._id] is not None:
            keys.append(_arena.keys[node._id])
            node = _arena.parents[node._id]
        return tuple(reversed(keys))

    def _raw(self) -> Any:
        return value_of(self)

    def _child(self, key: Any) -> Node:
        return resolve(self, key)

    # --- Reads (track) ---

    def get(self) -> Any:
        """The raw value at this path, or UNDEFINED."""
        track(self)
        return value_of(self)

    def is_(self, other: Any) -> bool:
        """Compare raw values with ==; other may be a node.

        Plain Python equality, with no type coercion: a node holding "230"
        is not 230. Convert first (as_number(), as_string()) to compare
        across types.
        """
        track(self)
        if isinstance(other, Node):
            track(other)
            other = value_of(other)
        value = value_of(self)
        return value is other or bool(value == other)

    def typeof(self) -> str:
        track(self)
        return typeof(value_of(self))

    def free(self) -> bool:
        """True while the parent's value is not an object (detached path)."""
        track(self)
        parent = _arena.parents[self._id]
        return parent is not None and not is_object(value_of(parent))

    def as_string(self) -> str:
        track(self)
        return str(value_of(self))

    def as_number(self) -> int | float:
        track(self)
        value = value_of(self)
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return float(value)
        return float(value)

    def __bool__(self) -> bool:
        track(self)
        return bool(value_of(self))

    # --- Writes ---

    def set(self, value: Any) -> None:
        """Store value (unwrapped) at this path. Setting UNDEFINED deletes."""
        if self._id in _arena.derivation_fns:
            self._forward().set(value)
            return
        if isinstance(value, Node):
            value = value_of(value)
        self._store(value)

    def delete(self) -> None:
        """Remove this path's key. A no-op when there is nothing to remove."""
        if self._id in _arena.derivation_fns:
            self._forward().delete()
            return
        self._remove()

    def _forward(self) -> Node:
        source = _arena.passthrough.get(self._id)
        if source is None:
            raise ReadOnlyError(
                "derived value is read-only: its callback does not return a single node"
            )
        return source

    def _store(self, value: Any) -> None:
        if value is UNDEFINED:
            self._remove()
            return
        container = container_of(self)
        container[_arena.keys[self._id]] = value
        notify(self)

    def _remove(self) -> None:
        container = container_of(self)
        key = _arena.keys[self._id]
        if isinstance(container, MutableMapping):
            if key in container:
                del container[key]
                notify(self)
        elif isinstance(container, MutableSequence):
            if lookup(container, key) is not UNDEFINED:
                call_mutator(_arena.parents[self._id], "pop", (key,), {})

    # --- Children ---

    def child(self, key: Any) -> Node:
        """Resolve the child node for key and register it as a dependency."""
        node = resolve(self, key)
        track(node)
        return node

    def __getitem__(self, key: Any) -> Node:
        return self.child(key)

    def __setitem__(self, key: Any, value: Any) -> None:
        resolve(self, key).set(value)

    def __delitem__(self, key: Any) -> None:
        resolve(self, key).delete()

    # --- Enumeration (track) ---

    def keys(self) -> list:
        """The underlying container's own keys (indices for sequences)."""
        track(self)
        return own_keys(value_of(self))

    def values(self) -> list[Node]:
        return [self.child(key) for key in self.keys()]

    def items(self) -> list[tuple[Any, Node]]:
        return [(key, self.child(key)) for key in self.keys()]

    def __iter__(self) -> Iterator:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: Any) -> bool:
        """True when key is one of the container's own keys.

        For a list node that means a valid index, not a member value:
        `"tea" in drinks` is False; use `"tea" in drinks.get()` for membership.
        """
        if isinstance(key, Node):
            key = key.get()
        track(self)
        return lookup(value_of(self), key) is not UNDEFINED

    # --- Methods on the raw value ---

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call a method of the raw value. Mutating methods report changes."""
        track(self)
        value = value_of(self)
        if is_mutator(value, name):
            return call_mutator(self, name, args, kwargs)
        return getattr(value, name)(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        track(self)
        value = value_of(self)
        if is_mutator(value, name):

            def _mutator(*args: Any, **kwargs: Any) -> Any:
                return call_mutator(self, name, args, kwargs)

            return _mutator
        return getattr(value, name)

    # --- Events ---

    def add_event_listener(self, type: str, listener: Listener) -> Disposer:
        return subscribe(self, type, listener)

    def remove_event_listener(self, type: str, listener: Listener) -> None:
        unsubscribe(self, type, listener)

    def dispatch_event(self, event: Event) -> None:
        emit(self, event)

    def on_change(self, listener: Listener) -> Disposer:
        """Shorthand for add_event_listener("change", listener)."""
        return subscribe(self, "change", listener)

    def __repr__(self) -> str:
        label = "".join(f"[{key!r}]" for key in self.path) or "<root>"
        return f"Node({label}, {value_of(self)!r})"


# ─── Identity cache ──────────────────────────────────────────────────────────


def resolve(parent: Node, key: Any) -> Node:
    """The one node for (parent, key), created on first use.

    A node used as a key is read (and tracked) for its raw value.
    """
    if isinstance(key, Node):
        key = key.get()
    cache = _arena.children[parent._id]
    node = cache.get(key)
    if node is None:
        node = cache[key] = Node(parent, key)
    return node


def new_root(value: Any) -> Node:
    """A root over a synthetic single-key holder containing value."""
    holder = {} if value is UNDEFINED else {_arena.ROOT_KEY: value}
    return Node(None, _arena.ROOT_KEY, holder=holder)

"""Derived values — nodes whose value comes from re-running a callback.

The callback runs inside a fresh TrackingContext; every node it reads
becomes a dependency. The engine subscribes to "change" on each
dependency, stamping the listener with the current generation. When any
dependency fires, the generation advances, every earlier listener is
disposed (and would be inert anyway), and the callback runs again with a
fresh dependency set. The result is written into the derived node with
the usual idempotence rule, so the derived node only fires "change" when
its value actually differs. A mutation that reaches several dependencies
(a child and its ancestors share one ChangeDetail) re-runs the callback
once.

Derived nodes are read-only, except when the callback returns a node
(a passthrough): set() and delete() are then forwarded to that source.

All state lives in _arena — handles are ordinary root Nodes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from stateify import _arena
from stateify._tracking import TrackingContext, tracking
from stateify._values import UNDEFINED, value_of
from stateify.events import Event, subscribe
from stateify.node import Node, new_root

logger = logging.getLogger("stateify.derived")

IDLE = "idle"
EVALUATING = "evaluating"
SUBSCRIBED = "subscribed"


def derive(fn: Callable[[], Any]) -> Node:
    """Create a derived node over fn and evaluate it once.

    Usage:
        state = wrap({"index": 2, "array": ["foo", "bar", "baz"]})
        current = derive(lambda: state["array"][state["index"].get()])

        current.get()           # 'baz'
        state["index"].set(1)
        current.get()           # 'bar'
    """
    node = new_root(UNDEFINED)
    _arena.derivation_fns[node._id] = fn
    _arena.generations[node._id] = 0
    _arena.subscriptions[node._id] = []
    _arena.phases[node._id] = IDLE
    _arena.causes[node._id] = None
    _arena.passthrough[node._id] = None
    evaluate(node)
    return node


def is_derived(node: Node) -> bool:
    return node._id in _arena.derivation_fns


def phase(node: Node) -> str:
    return _arena.phases[node._id]


def subscription_count(node: Node) -> int:
    """Number of live subscriptions held by a derived node."""
    return len(_arena.subscriptions[node._id])


def evaluate(node: Node) -> None:
    """Run the callback, resubscribe to what it read, and store the result."""
    generation = _invalidate(node)
    _arena.phases[node._id] = EVALUATING

    context = TrackingContext()
    try:
        with tracking(context):
            result = _arena.derivation_fns[node._id]()
    except Exception:
        _arena.phases[node._id] = IDLE
        raise

    if isinstance(result, Node):
        _arena.passthrough[node._id] = result
        result = value_of(result)
    else:
        _arena.passthrough[node._id] = None

    listener = _on_dependency_change(node, generation)
    disposers = _arena.subscriptions[node._id]
    for dependency in context.dependencies:
        disposers.append(subscribe(dependency, "change", listener))
    _arena.phases[node._id] = SUBSCRIBED
    logger.debug(
        "Evaluated %r (generation %d, %d dependencies)", node, generation, len(context)
    )

    node._store(result)


def dispose(node: Node) -> None:
    """Disconnect from all dependencies. The derived node keeps its last value."""
    _invalidate(node)
    _arena.phases[node._id] = IDLE


def _invalidate(node: Node) -> int:
    """Advance the generation and drop the current subscription set."""
    _arena.generations[node._id] += 1
    disposers = _arena.subscriptions[node._id]
    for disposer in disposers:
        disposer()
    disposers.clear()
    return _arena.generations[node._id]


def _on_dependency_change(node: Node, generation: int) -> Callable[[Event], None]:
    def _listener(event: Event) -> None:
        if _arena.generations.get(node._id) != generation:
            return
        # One mutation reaches several dependencies (a child, then its
        # ancestors); evaluate once per shared detail.
        cause = event.detail
        if cause is not None:
            if _arena.causes.get(node._id) is cause:
                return
            _arena.causes[node._id] = cause
        evaluate(node)

    return _listener

"""Change propagation — local dispatch, root-group diff, stoppable bubbling.

A mutation is reported on the node that was written (the source). Nodes
never hold values, so writing one path can change many others: its
ancestors (same objects, mutated in place) and its descendants (which
may now resolve elsewhere or detach). After the source's own events,
every node in the source's root group is re-read against its cached
value; each node that changed, plus the ancestor chains of the changed
nodes and of the source, receives one "change" event carrying the
source's shared ChangeDetail. Dispatch runs deepest first and halts as
soon as a listener calls stop_propagation().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stateify import _arena
from stateify._tracking import untracked
from stateify._values import same, value_of
from stateify.events import ChangeDetail, Event, emit

if TYPE_CHECKING:
    from stateify.node import Node

logger = logging.getLogger("stateify.propagation")


def refresh(node: Node) -> tuple:
    """Re-read node's value. Returns (value, old_value) and updates the cache."""
    value = value_of(node)
    old_value = _arena.cached_values[node._id]
    _arena.cached_values[node._id] = value
    return value, old_value


def detail_for(node: Node, value, old_value) -> ChangeDetail:
    parent = _arena.parents[node._id]
    key = None if parent is None else _arena.keys[node._id]
    return ChangeDetail(value, old_value, source=node, parent=parent, key=key)


def notify(
    node: Node,
    change: tuple | None = None,
    *,
    bubble: bool = True,
    report_as: Node | None = None,
) -> bool:
    """Report a mutation at node.

    change is an explicit (value, old_value) pair; when omitted it is
    computed from node's cached value. Returns False (and emits nothing)
    when the value did not change. report_as names the node the shared
    detail describes (source, parent, key) when that is not node itself.
    """
    if change is None:
        value, old_value = refresh(node)
    else:
        value, old_value = change
        _arena.cached_values[node._id] = value
    if same(value, old_value):
        return False

    detail = detail_for(node if report_as is None else report_as, value, old_value)
    with untracked():
        emit(node, Event("change", detail))
        emit(node, Event("valuechange", detail))
        if not bubble:
            return True
        for affected in _affected(node):
            if detail.propagation_stopped:
                logger.debug("Propagation of %r stopped before %r", node, affected)
                break
            emit(affected, Event("change", detail))
            emit(affected, Event("propertychange", detail))
    return True


def _affected(source: Node) -> list[Node]:
    """Every node other than source that must observe source's mutation."""
    root = _arena.roots[source._id]
    collected: dict[int, Node] = {}

    def _collect_chain(node: Node | None) -> None:
        while node is not None and node._id not in collected:
            collected[node._id] = node
            node = _arena.parents[node._id]

    for member in list(_arena.groups[root._id]):
        if member is source:
            continue
        value, old_value = refresh(member)
        if not same(value, old_value):
            _collect_chain(member)
    _collect_chain(_arena.parents[source._id])
    collected.pop(source._id, None)
    # sorted() is stable: creation order breaks ties at equal depth.
    return sorted(collected.values(), key=lambda n: -_arena.depths[n._id])

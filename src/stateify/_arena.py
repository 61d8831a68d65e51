"""Data arena — plain Python structures that hold all node state.

Node handles are thin objects holding an _id; everything they know lives
here. The arena is also the identity cache's backing store and the owner
of eviction: nothing is reclaimed until release() is called for a root.
"""

import itertools
import logging

logger = logging.getLogger("stateify.arena")

ROOT_KEY = "_"

# Node state
parents: dict[int, object] = {}  # node_id -> parent Node (None for roots)
keys: dict[int, object] = {}
depths: dict[int, int] = {}
cached_values: dict[int, object] = {}
children: dict[int, dict] = {}  # node_id -> {key: Node}
listeners: dict[int, dict[str, list]] = {}  # node_id -> {event type: [callable]}
roots: dict[int, object] = {}  # node_id -> root Node

# Root state
holders: dict[int, dict] = {}  # root_id -> {ROOT_KEY: value}
groups: dict[int, list] = {}  # root_id -> every Node under it, creation order
by_container: dict[int, tuple] = {}  # id(raw container) -> (container, root Node)

# Derived state
derivation_fns: dict[int, object] = {}
generations: dict[int, int] = {}
subscriptions: dict[int, list] = {}  # derived_id -> disposers
phases: dict[int, str] = {}
passthrough: dict[int, object] = {}  # derived_id -> source Node or None
causes: dict[int, object] = {}  # derived_id -> ChangeDetail of the last evaluation

_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def evict(root_id: int) -> int:
    """Drop every entry belonging to the group rooted at root_id.

    Returns the number of nodes evicted.
    """
    members = groups.pop(root_id, [])
    for node in members:
        node_id = node._id
        for table in (parents, keys, depths, cached_values, children, listeners, roots):
            table.pop(node_id, None)
    holders.pop(root_id, None)
    for table in (derivation_fns, generations, subscriptions, phases, passthrough, causes):
        table.pop(root_id, None)
    for container_id, (_, root) in list(by_container.items()):
        if root._id == root_id:
            del by_container[container_id]
    logger.debug("Evicted root %d (%d nodes)", root_id, len(members))
    return len(members)

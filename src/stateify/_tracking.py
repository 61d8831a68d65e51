"""Dependency tracking — records which nodes a derived callback reads.

Uses contextvars so the active context follows the current thread or task
rather than a single shared global. Node reads call track(); when a
TrackingContext is active the node is recorded as a dependency.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from stateify.node import Node


class TrackingContext:
    """Ordered, de-duplicated set of nodes read during one evaluation."""

    __slots__ = ("_nodes",)

    def __init__(self) -> None:
        self._nodes: dict[int, Node] = {}

    def add(self, node: Node) -> None:
        self._nodes.setdefault(node._id, node)

    @property
    def dependencies(self) -> list[Node]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"TrackingContext({len(self._nodes)} dependencies)"


current_context: contextvars.ContextVar[TrackingContext | None] = contextvars.ContextVar(
    "current_context", default=None
)


def track(node: Node) -> None:
    """Register node with the active context, if any."""
    context = current_context.get()
    if context is not None:
        context.add(node)


@contextmanager
def tracking(context: TrackingContext) -> Iterator[TrackingContext]:
    """Make context the active one for the duration of the block."""
    token = current_context.set(context)
    try:
        yield context
    finally:
        current_context.reset(token)


@contextmanager
def untracked() -> Iterator[None]:
    """Suspend tracking, e.g. for reads a listener makes mid-evaluation."""
    token = current_context.set(None)
    try:
        yield
    finally:
        current_context.reset(token)

"""Textual integration for stateify. Opt-in — requires textual.

Guard + NoMatches + thread-marshal enforced here, not at callsites.
Textual coupling is isolated in this module; the core stays agnostic.
_paused_apps has a single owner (this module) and an explicit API
(pause/is_safe): an app's id is present exactly while inside pause().
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

from stateify.events import Event
from stateify.node import Node
from stateify.wrap import release, wrap

logger = logging.getLogger("stateify.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class Binding:
    """Disposable link between a node's changes and a widget effect."""

    __slots__ = ("node", "_disposer", "_owned", "_disposed")

    def __init__(self, node: Node, disposer: Callable[[], None], owned: bool) -> None:
        self.node = node
        self._disposer = disposer
        self._owned = owned
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._disposer()
        if self._owned:
            release(self.node)


def bind(app, source, effect: Callable[[Any], None], *, fire_immediately: bool = False) -> Binding:
    """Call effect(value) whenever source changes, safely for Textual widgets.

    source is a node, or a zero-argument callback (wrapped as a derived
    node owned by the binding). Skips while the app is paused or not
    running, swallows NoMatches from widget queries, and marshals calls
    from other threads through app.call_from_thread.
    """
    owned = not isinstance(source, Node)
    node = wrap(source) if owned else source
    _main = threading.get_ident()

    def _guarded(event: Event | None = None) -> None:
        if not is_safe(app):
            return
        value = node._raw()
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value: Any) -> None:
        try:
            effect(value)
        except NoMatches:
            logger.info("Skipped effect for %r: widget not mounted", node)

    disposer = node.add_event_listener("change", _guarded)
    if fire_immediately:
        _guarded()
    return Binding(node, disposer, owned)

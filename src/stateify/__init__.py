"""stateify: observable node graphs over plain Python value trees."""

from importlib.metadata import version as _version

__version__ = _version("stateify")

from stateify._values import UNDEFINED
from stateify._tracking import TrackingContext
from stateify.errors import StateifyError, ReadOnlyError
from stateify.events import ChangeDetail, Event
from stateify.node import Node
from stateify.mutations import register_mutators, mutating_methods
from stateify.derived import derive, dispose
from stateify.wrap import wrap, unwrap, is_wrapped, release, dumps
# textual NOT auto-imported — opt-in only

__all__ = [
    "UNDEFINED",
    "TrackingContext",
    "StateifyError",
    "ReadOnlyError",
    "ChangeDetail",
    "Event",
    "Node",
    "register_mutators",
    "mutating_methods",
    "derive",
    "dispose",
    "wrap",
    "unwrap",
    "is_wrapped",
    "release",
    "dumps",
]

"""Exceptions raised by stateify itself.

Failures of the underlying raw operation (writing through a detached path,
an out-of-range list index, a missing method) are not wrapped; they
surface as whatever Python raised.
"""


class StateifyError(Exception):
    """Base error for stateify-specific failures."""


class ReadOnlyError(StateifyError, TypeError):
    """Raised when writing to a derived value that has no source to forward to."""

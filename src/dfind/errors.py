"""Exception hierarchy for dfind."""

from __future__ import annotations


class DFindError(Exception):
    """Base class for all dfind errors."""


class SetupFailure(DFindError):
    """The store could not be opened or provisioned."""


class TraversalFailure(DFindError):
    """A filesystem entry could not be accessed during a scan."""


class ConstraintViolation(DFindError):
    """Insert without force against an existing key."""


AlreadyExists = ConstraintViolation


class KeyMismatch(ConstraintViolation):
    """The insert key differs from the record's own key."""


class ReadOnlyViolation(DFindError):
    """Mutating call against a read-only store."""


class QueryFailure(DFindError):
    """A search could not be started or failed while streaming."""


class StreamClosed(DFindError):
    """Send attempted on a stream that has already been closed."""

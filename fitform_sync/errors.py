"""
Sync client error types.

Control client calls raise these; the coordinator turns them into failed
``OperationResult`` values and the telemetry channel only logs them.
"""


class SyncError(Exception):
    """Base class for all sync client errors."""


class TransportError(SyncError):
    """Connect, send or receive failure on either channel."""


class EncodeError(SyncError):
    """A request body or joint frame could not be serialized."""


class DecodeError(SyncError):
    """A response was malformed or missing an expected field."""


class ProtocolError(SyncError):
    """An operation was attempted in a state that does not allow it."""

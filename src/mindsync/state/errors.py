"""Errors raised while reading or writing library state."""


class StateError(Exception):
    """Persisted library data could not be read or parsed."""


class MissingStateError(StateError):
    """Raised when a library has no index yet."""

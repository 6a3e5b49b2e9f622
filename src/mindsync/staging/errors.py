"""Errors raised by the staging store."""


class StagingError(Exception):
    """Base exception for staging operations."""


class InvalidTransitionError(StagingError):
    """Raised when a file status change is not allowed by the lifecycle."""


class UnknownFileError(StagingError, KeyError):
    """Raised when an action references a file id that is not staged."""

    def __str__(self) -> str:
        return Exception.__str__(self)

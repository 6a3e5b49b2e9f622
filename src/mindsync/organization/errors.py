"""Errors raised by the commit and reconciliation engines."""


class OrganizationError(Exception):
    """Base exception for organization operations."""


class StorageNotConfiguredError(OrganizationError):
    """Raised when no library root is configured; no file may be moved."""

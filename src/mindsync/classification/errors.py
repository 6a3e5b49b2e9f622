"""Errors raised by analysis providers."""

from __future__ import annotations

NOT_SUPPORTED_MARKERS = ("not support", "不支持")


class ProviderError(Exception):
    """Raised when an analysis provider call fails."""


class CapabilityNotSupportedError(ProviderError):
    """Raised when the provider cannot handle the requested content type."""


def is_capability_error(exc: BaseException) -> bool:
    """Return True when ``exc`` signals an unsupported request type.

    Providers that raise plain exceptions are recognised by a "not supported"
    marker in their message.
    """
    if isinstance(exc, CapabilityNotSupportedError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in NOT_SUPPORTED_MARKERS)


__all__ = [
    "CapabilityNotSupportedError",
    "NOT_SUPPORTED_MARKERS",
    "ProviderError",
    "is_capability_error",
]

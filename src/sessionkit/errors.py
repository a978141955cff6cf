from __future__ import annotations


class SessionError(Exception):
    """Base class for every error raised by sessionkit."""


class InvalidConfig(SessionError, ValueError):
    """Raised at construction time for unusable configuration."""


class InvalidArgument(SessionError, ValueError):
    """Raised at the call site for a bad key or expiration policy."""


class UnsupportedOperation(SessionError, AttributeError):
    """Raised when code asks the manager for an operation it does not expose."""


class BackendError(SessionError):
    """Storage-layer failure inside a backend.

    Lifecycle operations catch it and report ``False`` instead of raising.
    """

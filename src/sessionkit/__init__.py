"""Server-side sessions with flash values and identifier rotation."""

from .backends import MemoryBackend, MemoryStore, SessionBackend, SQLiteBackend
from .clock import Clock, SystemClock
from .collection import EXPIRATION_KEY, Collection
from .config import SessionOptions
from .context import RequestContext
from .errors import (
    BackendError,
    InvalidArgument,
    InvalidConfig,
    SessionError,
    UnsupportedOperation,
)
from .manager import Manager, RotationTimer
from .models import ExpiryPolicy, ExpiryState, SessionStatus

__all__ = [
    "EXPIRATION_KEY",
    "BackendError",
    "Clock",
    "Collection",
    "ExpiryPolicy",
    "ExpiryState",
    "InvalidArgument",
    "InvalidConfig",
    "Manager",
    "MemoryBackend",
    "MemoryStore",
    "RequestContext",
    "RotationTimer",
    "SQLiteBackend",
    "SessionBackend",
    "SessionError",
    "SessionOptions",
    "SessionStatus",
    "SystemClock",
    "UnsupportedOperation",
]

"""Storage backends for session payloads."""

from .base import BaseBackend, SessionBackend, generate_id, is_valid_id
from .memory import MemoryBackend, MemoryStore
from .schemas import SecurityBlock, SessionPayload
from .sqlite import SQLiteBackend

__all__ = [
    "BaseBackend",
    "MemoryBackend",
    "MemoryStore",
    "SQLiteBackend",
    "SecurityBlock",
    "SessionBackend",
    "SessionPayload",
    "generate_id",
    "is_valid_id",
]

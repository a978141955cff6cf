from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ExpiryPolicy(str, Enum):
    ON_REQUEST = "request"
    ON_GET = "get"


class ExpiryState(str, Enum):
    NEW = "new"
    LOADED = "loaded"
    EXPIRED = "expired"


class SessionStatus(str, Enum):
    DISABLED = "disabled"
    NONE = "none"
    ACTIVE = "active"


@dataclass(slots=True)
class StoredPayload:
    id: str
    name: str
    payload: str
    expires_at: int
    updated_at: datetime

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..models import ExpiryPolicy, SessionStatus


class SessionState(BaseModel):
    id: Optional[str] = None
    name: str
    status: SessionStatus
    namespace: Optional[str] = None
    keys: list[str] = Field(default_factory=list)


class SessionValue(BaseModel):
    key: str
    value: Any = None
    present: bool


class SessionValueWriteRequest(BaseModel):
    value: Any = Field(description="Any JSON value.")
    expiry: Optional[ExpiryPolicy] = Field(
        default=None,
        description="Flash policy: 'request' (next request only) or 'get' (until first read).",
    )


class KeepResponse(BaseModel):
    key: str
    kept: bool


class RotateResponse(BaseModel):
    id: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool

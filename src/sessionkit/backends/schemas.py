from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SecurityBlock(BaseModel):
    id: str
    ip: str = ""
    ua: str = ""
    ex: int = Field(default=0, description="Absolute expiry as unix seconds, 0 when not enforced.")
    rt: int = Field(default=0, description="Next identifier rotation deadline as unix seconds.")


class SessionPayload(BaseModel):
    data: dict[str, Any]
    security: SecurityBlock

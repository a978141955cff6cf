from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from starlette.requests import Request

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass(frozen=True, slots=True)
class RequestContext:
    """What a backend may know about the current request."""

    remote_addr: str = ""
    user_agent: str = ""
    cookies: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    form: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @classmethod
    async def from_request(cls, request: "Request", *, read_form: bool = False) -> "RequestContext":
        form: Mapping[str, str] = {}
        content_type = request.headers.get("content-type", "")
        if read_form and content_type.startswith(_FORM_CONTENT_TYPES):
            submitted = await request.form()
            form = {key: value for key, value in submitted.items() if isinstance(value, str)}

        return cls(
            remote_addr=request.client.host if request.client else "",
            user_agent=request.headers.get("user-agent", ""),
            cookies=dict(request.cookies),
            query=dict(request.query_params),
            form=form,
            headers=dict(request.headers),
        )

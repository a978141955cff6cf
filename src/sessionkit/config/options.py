from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .loader import get_bool_env, get_int_env, get_str_env

DEFAULT_EXPIRATION_TIME = 7200
DEFAULT_ROTATION_TIME = 300


def _positive_seconds(value: Any) -> Optional[int]:
    """Return ``value`` as a positive number of seconds, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or value <= 0:
        return None
    return int(value)


class SessionOptions(BaseModel):
    """Options shared by the session manager and its backend.

    Unknown keys are ignored so the same mapping can carry options for
    other components.
    """

    model_config = ConfigDict(frozen=True)

    match_ip: bool = Field(default=False, description="Require the client address to match.")
    match_ua: bool = Field(default=True, description="Require the user agent to match.")
    expiration_time: int = Field(
        default=DEFAULT_EXPIRATION_TIME,
        description="Absolute session lifetime in seconds.",
    )
    rotation_time: Optional[int] = Field(
        default=DEFAULT_ROTATION_TIME,
        description="Identifier rotation cadence in seconds, None once disabled.",
    )
    namespace: Optional[str] = Field(default=None, description="Collection key prefix.")

    cookie_domain: Optional[str] = None
    cookie_path: str = "/"
    cookie_secure: bool = False
    cookie_http_only: bool = True
    expire_on_close: bool = False
    post_cookie_name: str = ""
    http_header_name: str = "Session-Id"
    enable_cookie: bool = True

    @field_validator("expiration_time", mode="before")
    @classmethod
    def validate_expiration_time(cls, value: Any) -> int:
        return _positive_seconds(value) or DEFAULT_EXPIRATION_TIME

    @field_validator("rotation_time", mode="before")
    @classmethod
    def validate_rotation_time(cls, value: Any) -> Optional[int]:
        # An unset value means the default cadence; only explicit non-positive
        # or unparseable values turn rotation off.
        if value is None:
            return DEFAULT_ROTATION_TIME
        return _positive_seconds(value)

    @classmethod
    def from_env(cls, prefix: str = "SESSION_") -> "SessionOptions":
        values: dict[str, Any] = {
            "match_ip": get_bool_env(f"{prefix}MATCH_IP", False),
            "match_ua": get_bool_env(f"{prefix}MATCH_UA", True),
            "expiration_time": get_int_env(f"{prefix}EXPIRATION_TIME", DEFAULT_EXPIRATION_TIME),
            "rotation_time": get_str_env(f"{prefix}ROTATION_TIME", str(DEFAULT_ROTATION_TIME)),
            "cookie_path": get_str_env(f"{prefix}COOKIE_PATH", "/"),
            "cookie_secure": get_bool_env(f"{prefix}COOKIE_SECURE", False),
            "cookie_http_only": get_bool_env(f"{prefix}COOKIE_HTTP_ONLY", True),
            "expire_on_close": get_bool_env(f"{prefix}EXPIRE_ON_CLOSE", False),
            "post_cookie_name": get_str_env(f"{prefix}POST_FIELD", ""),
            "http_header_name": get_str_env(f"{prefix}HTTP_HEADER", "Session-Id"),
            "enable_cookie": get_bool_env(f"{prefix}ENABLE_COOKIE", True),
        }
        if namespace := get_str_env(f"{prefix}NAMESPACE"):
            values["namespace"] = namespace
        if domain := get_str_env(f"{prefix}COOKIE_DOMAIN"):
            values["cookie_domain"] = domain
        return cls.model_validate(values)


OptionsLike = Union[SessionOptions, Mapping[str, Any], None]


def coerce_options(options: OptionsLike) -> SessionOptions:
    if options is None:
        return SessionOptions()
    if isinstance(options, SessionOptions):
        return options
    return SessionOptions.model_validate(dict(options))

# Copyright (c) 2025 Bytedance Ltd. and/or its affiliates
# SPDX-License-Identifier: MIT

from typing import TYPE_CHECKING

from .dependencies import get_session, set_backend_factory, set_session_options
from .middleware import SessionMiddleware

__all__ = ["SessionMiddleware", "app", "get_session", "set_backend_factory", "set_session_options"]

if TYPE_CHECKING:  # pragma: no cover
    from .app import app as _app


def __getattr__(name: str):  # pragma: no cover - simple lazy import
    if name == "app":
        from .app import app as fastapi_app

        return fastapi_app
    raise AttributeError(name)

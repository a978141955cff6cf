from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Request

from ..backends import MemoryBackend, MemoryStore, SessionBackend, SQLiteBackend
from ..config import SessionOptions, get_str_env
from ..context import RequestContext
from ..manager import Manager

logger = logging.getLogger(__name__)

BackendFactory = Callable[[RequestContext], SessionBackend]

_BACKEND_FACTORY: Optional[BackendFactory] = None
_SESSION_OPTIONS: Optional[SessionOptions] = None


def get_session_options() -> SessionOptions:
    global _SESSION_OPTIONS
    if _SESSION_OPTIONS is None:
        _SESSION_OPTIONS = SessionOptions.from_env()
    return _SESSION_OPTIONS


def set_session_options(options: Optional[SessionOptions]) -> None:
    global _SESSION_OPTIONS
    _SESSION_OPTIONS = options


def initialise_backend_factory() -> BackendFactory:
    """Create the per-request backend factory using configuration."""
    global _BACKEND_FACTORY
    if _BACKEND_FACTORY is not None:
        return _BACKEND_FACTORY

    name = get_str_env("SESSION_NAME", "sid")
    kind = get_str_env("SESSION_BACKEND", "sqlite").lower()
    options = get_session_options()

    if kind == "memory":
        store = MemoryStore()

        def memory_factory(context: RequestContext) -> SessionBackend:
            return MemoryBackend(name, store, context=context, options=options)

        factory: BackendFactory = memory_factory
        logger.info("Initialised in-memory session backend %s", name)
    else:
        probe = SQLiteBackend(name, get_str_env("SESSION_DB_PATH", "sessions.db"), options=options)
        ready = probe.init()

        def sqlite_factory(context: RequestContext) -> SessionBackend:
            return SQLiteBackend(name, probe.db_path, context=context, options=options, initialised=ready)

        factory = sqlite_factory
        logger.info("Initialised SQLite session backend %s with DB path %s", name, probe.db_path)

    _BACKEND_FACTORY = factory
    return factory


def set_backend_factory(factory: Optional[BackendFactory]) -> None:
    global _BACKEND_FACTORY
    _BACKEND_FACTORY = factory


def get_session(request: Request) -> Manager:
    manager = getattr(request.state, "session", None)
    if manager is None:
        raise RuntimeError("Session middleware has not been installed")
    return manager

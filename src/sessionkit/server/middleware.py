from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..clock import Clock
from ..config import SessionOptions
from ..context import RequestContext
from ..manager import Manager
from ..models import SessionStatus
from .dependencies import BackendFactory, get_session_options, initialise_backend_factory

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Starts a session before each request and persists it afterwards.

    The identifier travels in a cookie named after the backend; a destroyed
    session has its cookie deleted.
    """

    def __init__(
        self,
        app: ASGIApp,
        backend_factory: Optional[BackendFactory] = None,
        options: Optional[SessionOptions] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(app)
        self._backend_factory = backend_factory
        self._options = options
        self._clock = clock

    async def dispatch(self, request: Request, call_next) -> Response:
        options = self._options or get_session_options()
        factory = self._backend_factory or initialise_backend_factory()

        context = await RequestContext.from_request(request, read_form=bool(options.post_cookie_name))
        manager = Manager(factory(context), options, clock=self._clock)
        await asyncio.to_thread(manager.start)
        request.state.session = manager

        response = await call_next(request)

        if manager.status == SessionStatus.ACTIVE:
            if not await asyncio.to_thread(manager.stop):
                logger.warning("Session %s could not be persisted", manager.name)
            elif options.enable_cookie and manager.id:
                self._set_cookie(response, manager, options)
        elif manager.id is None and manager.name in request.cookies:
            response.delete_cookie(manager.name, path=options.cookie_path, domain=options.cookie_domain)

        return response

    @staticmethod
    def _set_cookie(response: Response, manager: Manager, options: SessionOptions) -> None:
        response.set_cookie(
            manager.name,
            manager.id,
            max_age=None if options.expire_on_close else options.expiration_time,
            path=options.cookie_path,
            domain=options.cookie_domain,
            secure=options.cookie_secure,
            httponly=options.cookie_http_only,
            samesite="lax",
        )

from __future__ import annotations

import json
import logging
import re
import secrets
import string
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from ..clock import SYSTEM_CLOCK, Clock
from ..config.options import OptionsLike, SessionOptions, coerce_options
from ..context import RequestContext
from ..errors import BackendError, InvalidConfig
from ..models import SessionStatus
from .schemas import SessionPayload

if TYPE_CHECKING:  # pragma: no cover
    from ..collection import Collection
    from ..manager import RotationTimer

logger = logging.getLogger(__name__)

ID_LENGTH = 32
_ID_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
_ID_PATTERN = re.compile(rf"^[0-9A-Za-z]{{{ID_LENGTH}}}$")


def generate_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))


def is_valid_id(value: Optional[str]) -> bool:
    return bool(value) and _ID_PATTERN.match(value) is not None


class SessionBackend(ABC):
    """Interface a session manager drives."""

    @property
    @abstractmethod
    def id(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def status(self) -> SessionStatus: ...

    @abstractmethod
    def bind(self, data: "Collection", timer: "RotationTimer") -> None:
        """Receive the manager's collection and rotation timer."""

    @abstractmethod
    def regenerate_id(self) -> None: ...

    @abstractmethod
    def create(self) -> bool: ...

    @abstractmethod
    def start(self) -> bool: ...

    @abstractmethod
    def read(self) -> bool: ...

    @abstractmethod
    def write(self) -> bool: ...

    @abstractmethod
    def stop(self) -> bool: ...

    @abstractmethod
    def gc(self) -> bool: ...

    @abstractmethod
    def destroy(self) -> bool: ...


class BaseBackend(SessionBackend):
    """Shared payload handling for backends that store serialised payloads.

    Subclasses provide storage through ``_load``, ``_save``, ``_discard`` and
    ``_collect``. Those hooks raise ``BackendError`` on failure; the public
    lifecycle methods turn it into a ``False`` result.
    """

    def __init__(
        self,
        name: str,
        *,
        context: Optional[RequestContext] = None,
        options: OptionsLike = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._name = ""
        self.name = name
        self._options: SessionOptions = coerce_options(options)
        self._context = context or RequestContext()
        self._clock = clock
        self._id: Optional[str] = None
        self._retired_ids: list[str] = []
        self._active = False
        self._data: Optional["Collection"] = None
        self._timer: Optional["RotationTimer"] = None

    @property
    def id(self) -> Optional[str]:
        return self._id

    @id.setter
    def id(self, value: Optional[str]) -> None:
        self._id = value

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise InvalidConfig("Session backend requires a name")
        self._name = value

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def context(self) -> RequestContext:
        return self._context

    @context.setter
    def context(self, value: RequestContext) -> None:
        self._context = value

    @property
    def clock(self) -> Clock:
        return self._clock or SYSTEM_CLOCK

    @property
    def expiration(self) -> int:
        return self._options.expiration_time

    @property
    def available(self) -> bool:
        return True

    @property
    def status(self) -> SessionStatus:
        if not self.available:
            return SessionStatus.DISABLED
        return SessionStatus.ACTIVE if self._active else SessionStatus.NONE

    def bind(self, data: "Collection", timer: "RotationTimer") -> None:
        self._data = data
        self._timer = timer
        if self._clock is None:
            self._clock = timer.clock

    def find_by_id(self) -> Optional[str]:
        """Resolve the identifier sent with the request, if any.

        Checked in order: posted field, cookie, query parameter, header.
        Values that are not well-formed identifiers are ignored.
        """
        options = self._options
        context = self._context
        candidates: list[Optional[str]] = []
        if options.post_cookie_name:
            candidates.append(context.form.get(options.post_cookie_name))
        if options.enable_cookie:
            candidates.append(context.cookies.get(self._name))
        candidates.append(context.query.get(self._name))
        if options.http_header_name:
            candidates.append(context.header(options.http_header_name))

        for candidate in candidates:
            if candidate is None:
                continue
            if is_valid_id(candidate):
                return candidate
            logger.debug("Ignoring malformed session identifier for %s", self._name)
        return None

    def regenerate_id(self) -> None:
        """Switch to a new identifier.

        The record stored under the previous identifier is removed only once
        the payload has been saved under the new one.
        """
        previous = self._id
        self._id = generate_id()
        if previous and self._active:
            self._retired_ids.append(previous)

    def create(self) -> bool:
        if not self.available:
            return False
        self._active = True
        self.regenerate_id()
        self._discard_retired()
        logger.debug("Created session %s", self._name)
        return True

    def start(self) -> bool:
        if not self.available:
            return False
        if not self._active:
            self._active = True
            resolved = self.find_by_id()
            if resolved:
                self._id = resolved
            elif self._id is None:
                self._id = generate_id()
        return self.read()

    def read(self) -> bool:
        if not self._active or self._id is None:
            return False

        try:
            raw = self._load(self._id)
        except BackendError as exc:
            logger.error("Failed to read session %s: %s", self._name, exc)
            return False

        if raw is None:
            logger.debug("No stored payload for session %s", self._name)
            return False
        return self._initialize(raw)

    def write(self) -> bool:
        if not self._active:
            return False
        return self._persist()

    def stop(self) -> bool:
        if not self._active:
            return False
        persisted = self._persist()
        self._active = False
        return persisted

    def destroy(self) -> bool:
        if not self._active:
            return False
        discarded = self._discard_retired()
        if self._id:
            discarded = self._safe_discard(self._id) and discarded
        self._id = None
        self._active = False
        logger.debug("Destroyed session %s", self._name)
        return discarded

    def gc(self) -> bool:
        if not self.available:
            return False
        try:
            removed = self._collect(self.clock.now())
        except BackendError as exc:
            logger.error("Session garbage collection failed for %s: %s", self._name, exc)
            return False
        logger.debug("Collected %d expired payloads for %s", removed, self._name)
        return True

    def validate(self, raw: str) -> Optional[SessionPayload]:
        """Parse a stored payload, returning None if it must not be trusted."""
        try:
            payload = SessionPayload.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            logger.warning("Rejected malformed payload for session %s: %s", self._name, exc)
            return None

        security = payload.security
        if self._options.match_ip and security.ip != self._context.remote_addr:
            logger.warning("Rejected payload for session %s: client address mismatch", self._name)
            return None
        if self._options.match_ua and security.ua != self._context.user_agent:
            logger.warning("Rejected payload for session %s: user agent mismatch", self._name)
            return None
        if security.ex and security.ex <= self.clock.now():
            logger.info("Rejected payload for session %s: expired", self._name)
            return None
        if security.id != self._id:
            logger.warning("Rejected payload for session %s: identifier mismatch", self._name)
            return None
        return payload

    def _initialize(self, raw: str) -> bool:
        data, timer = self._bound()
        payload = self.validate(raw)
        if payload is None:
            # Start over under a new identifier so the rejected record is left alone.
            data.clear()
            self._id = generate_id()
            return False

        self._id = payload.security.id
        timer.deadline = payload.security.rt
        data.replace(payload.data)
        return True

    def _finalize(self) -> dict[str, Any]:
        data, timer = self._bound()
        expires_at = self.clock.now() + self.expiration if self.expiration > 0 else 0
        if self._id is None:
            self._id = generate_id()

        return {
            "data": data.all(),
            "security": {
                "id": self._id,
                "ip": self._context.remote_addr,
                "ua": self._context.user_agent,
                "ex": expires_at,
                "rt": timer.deadline or 0,
            },
        }

    def _persist(self) -> bool:
        payload = self._finalize()
        try:
            encoded = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.error("Session %s holds data that cannot be serialised: %s", self._name, exc)
            return False

        try:
            self._save(self._id, encoded, payload["security"]["ex"])
        except BackendError as exc:
            logger.error("Failed to write session %s: %s", self._name, exc)
            return False

        self._discard_retired()
        return True

    def _discard_retired(self) -> bool:
        discarded = True
        while self._retired_ids:
            discarded = self._safe_discard(self._retired_ids.pop()) and discarded
        return discarded

    def _safe_discard(self, session_id: str) -> bool:
        try:
            self._discard(session_id)
        except BackendError as exc:
            logger.error("Failed to discard session %s: %s", self._name, exc)
            return False
        return True

    def _bound(self) -> tuple["Collection", "RotationTimer"]:
        if self._data is None or self._timer is None:
            raise RuntimeError("Session backend has not been bound to a manager")
        return self._data, self._timer

    @abstractmethod
    def _load(self, session_id: str) -> Optional[str]:
        """Return the stored payload text for ``session_id``, or None."""

    @abstractmethod
    def _save(self, session_id: str, payload: str, expires_at: int) -> None: ...

    @abstractmethod
    def _discard(self, session_id: str) -> None: ...

    @abstractmethod
    def _collect(self, now: int) -> int:
        """Remove payloads whose expiry has passed; return how many."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .clock import SYSTEM_CLOCK, Clock
from .collection import Collection
from .config.options import OptionsLike, SessionOptions, coerce_options
from .errors import UnsupportedOperation
from .models import SessionStatus

if TYPE_CHECKING:  # pragma: no cover
    from .backends.base import SessionBackend

logger = logging.getLogger(__name__)


class RotationTimer:
    """Absolute deadline for the next identifier rotation.

    Owned by the manager and lent to the backend, which restores the deadline
    from a stored payload and writes it into the next one.
    """

    def __init__(self, interval: Optional[int], clock: Clock) -> None:
        self._interval = interval if interval and interval > 0 else None
        self._clock = clock
        self._deadline: Optional[int] = None
        if self._interval:
            self._deadline = clock.now() + self._interval

    @property
    def interval(self) -> Optional[int]:
        return self._interval

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def deadline(self) -> Optional[int]:
        return self._deadline

    @deadline.setter
    def deadline(self, value: Optional[int]) -> None:
        if self._interval and value:
            self._deadline = int(value)

    def is_due(self) -> bool:
        return self._deadline is not None and self._clock.now() >= self._deadline

    def advance(self) -> None:
        if self._interval:
            self._deadline = self._clock.now() + self._interval


class Manager:
    """Coordinates one request's session: its data, its backend and rotation.

    Lifecycle operations return booleans and never raise for storage
    failures; check the return value.
    """

    def __init__(
        self,
        backend: "SessionBackend",
        options: OptionsLike = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._options: SessionOptions = coerce_options(options)
        self._backend = backend
        self._data = Collection()
        self._timer = RotationTimer(self._options.rotation_time, clock or SYSTEM_CLOCK)

        backend.bind(self._data, self._timer)

        if self._options.namespace is not None:
            self.set_namespace(self._options.namespace)

    def __getattr__(self, name: str):
        hint = f'; use manager.data.{name}()' if callable(getattr(Collection, name, None)) else ""
        raise UnsupportedOperation(f'Undefined session method: "{name}"{hint}')

    def __enter__(self) -> "Manager":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def backend(self) -> "SessionBackend":
        return self._backend

    @property
    def data(self) -> Collection:
        return self._data

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def id(self) -> Optional[str]:
        return self._backend.id

    @property
    def name(self) -> str:
        return self._backend.name

    @property
    def status(self) -> SessionStatus:
        return self._backend.status

    @property
    def namespace(self) -> Optional[str]:
        return self._data.namespace

    def set_namespace(self, name: str) -> None:
        self._data.set_namespace(name)

    @property
    def rotation_interval(self) -> Optional[int]:
        return self._timer.interval

    def get_rotation_timer(self) -> Optional[int]:
        return self._timer.deadline

    def set_rotation_timer(self, deadline: int) -> None:
        self._timer.deadline = deadline

    def is_rotation_due(self) -> bool:
        return self._timer.is_due()

    def create(self) -> bool:
        self._data.clear()
        return self._backend.create()

    def start(self) -> bool:
        return self._backend.start()

    def read(self) -> bool:
        return self._backend.read()

    def write(self) -> bool:
        if self.is_rotation_due():
            self.rotate()
        return self._backend.write()

    def stop(self) -> bool:
        if self.is_rotation_due():
            self.rotate()
        return self._backend.stop()

    def rotate(self) -> None:
        """Give the session a new identifier, keeping its data."""
        self._timer.advance()
        self._backend.regenerate_id()
        logger.info("Rotated session identifier for %s", self._backend.name)

    def destroy(self) -> bool:
        self._data.clear()
        return self._backend.destroy()

    def gc(self) -> bool:
        return self._backend.gc()

from __future__ import annotations

import threading
from typing import Optional

from ..clock import Clock
from ..config.options import OptionsLike
from ..context import RequestContext
from .base import BaseBackend


class MemoryStore:
    """Process-local payload storage shared by the backends of many requests.

    Suitable for development, testing, and single-process applications.
    """

    def __init__(self) -> None:
        self._payloads: dict[tuple[str, str], tuple[str, int]] = {}
        self._lock = threading.Lock()

    def get(self, name: str, session_id: str) -> Optional[str]:
        with self._lock:
            entry = self._payloads.get((name, session_id))
        return entry[0] if entry else None

    def set(self, name: str, session_id: str, payload: str, expires_at: int) -> None:
        with self._lock:
            self._payloads[(name, session_id)] = (payload, expires_at)

    def delete(self, name: str, session_id: str) -> None:
        with self._lock:
            self._payloads.pop((name, session_id), None)

    def purge(self, name: str, now: int) -> int:
        with self._lock:
            expired = [
                key
                for key, (_, expires_at) in self._payloads.items()
                if key[0] == name and expires_at and expires_at <= now
            ]
            for key in expired:
                del self._payloads[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._payloads)


class MemoryBackend(BaseBackend):
    def __init__(
        self,
        name: str,
        store: Optional[MemoryStore] = None,
        *,
        context: Optional[RequestContext] = None,
        options: OptionsLike = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(name, context=context, options=options, clock=clock)
        self._store = store if store is not None else MemoryStore()

    @property
    def store(self) -> MemoryStore:
        return self._store

    def _load(self, session_id: str) -> Optional[str]:
        return self._store.get(self.name, session_id)

    def _save(self, session_id: str, payload: str, expires_at: int) -> None:
        self._store.set(self.name, session_id, payload, expires_at)

    def _discard(self, session_id: str) -> None:
        self._store.delete(self.name, session_id)

    def _collect(self, now: int) -> int:
        return self._store.purge(self.name, now)

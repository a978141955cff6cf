"""Namespaced key/value container with flash expiration.

Expiration records are stored as ``[policy, state]`` pairs under a reserved
key of the flat store so they travel with the data through any backend.
State changes happen in two places only: ``replace`` (load time) and ``all``
(persist time). Within a single request a value stays readable until one of
those two runs.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .errors import InvalidArgument, InvalidConfig
from .models import ExpiryPolicy, ExpiryState

logger = logging.getLogger(__name__)

EXPIRATION_KEY = "__EXPIRATION__"

ExpiryLike = Union[ExpiryPolicy, str]


class Collection:
    """Session data for one request."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._namespace: Optional[str] = None

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    def set_namespace(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidConfig("Invalid session container namespace")
        self._namespace = name

    def has(self, key: str) -> bool:
        return self._prefix_key(key) in self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``.

        Reading an ON_GET flash value marks it EXPIRED; it is still returned
        by later reads until the next ``all`` or ``replace`` prunes it.
        """
        ns_key = self._prefix_key(key)
        if ns_key not in self._data:
            return default

        expiration = self.get_expiration(key)
        if (
            expiration is not None
            and expiration[0] == ExpiryPolicy.ON_GET
            and expiration[1] != ExpiryState.EXPIRED
        ):
            self.set_expiration(key, (ExpiryPolicy.ON_GET, ExpiryState.EXPIRED))

        return self._data[ns_key]

    def set(self, key: str, value: Any, expiry: Optional[ExpiryLike] = None) -> None:
        ns_key = self._prefix_key(key)
        if expiry:
            try:
                policy = ExpiryPolicy(expiry)
            except ValueError:
                raise InvalidArgument(f'Invalid session flash expiration method: "{expiry}"') from None
            self.set_expiration(key, (policy, ExpiryState.NEW))
        self._data[ns_key] = value

    def delete(self, key: str) -> None:
        ns_key = self._prefix_key(key)
        self._expirations().pop(ns_key, None)
        self._data.pop(ns_key, None)

    def keep(self, key: str) -> bool:
        """Reset the flash state of ``key`` so it survives one more cycle."""
        expiration = self.get_expiration(key)
        if expiration is None:
            return False
        self.set_expiration(key, (expiration[0], ExpiryState.NEW))
        return True

    def get_expiration(self, key: str) -> Optional[tuple[ExpiryPolicy, ExpiryState]]:
        record = self._expirations().get(self._prefix_key(key))
        if not record:
            return None

        method, state = record[0], record[1] if len(record) > 1 else None
        policy = ExpiryPolicy.ON_REQUEST if method == ExpiryPolicy.ON_REQUEST else ExpiryPolicy.ON_GET
        if state == ExpiryState.NEW:
            return policy, ExpiryState.NEW
        if state == ExpiryState.LOADED:
            return policy, ExpiryState.LOADED
        return policy, ExpiryState.EXPIRED

    def set_expiration(self, key: str, expiration: tuple[ExpiryLike, ExpiryLike]) -> None:
        policy, state = expiration
        self._expirations()[self._prefix_key(key)] = [ExpiryPolicy(policy).value, ExpiryState(state).value]

    def all(self) -> dict[str, Any]:
        """Prune expired entries and return a snapshot of the store."""
        expirations = self._expirations()
        for ns_key, record in list(expirations.items()):
            if record[1] == ExpiryState.EXPIRED:
                del expirations[ns_key]
                self._data.pop(ns_key, None)
                logger.debug("Pruned expired flash value %s", ns_key)

        snapshot = dict(self._data)
        snapshot[EXPIRATION_KEY] = {ns_key: list(record) for ns_key, record in expirations.items()}
        return snapshot

    def replace(self, data: Mapping[str, Any]) -> None:
        """Load a stored data section, advancing flash values by one request."""
        store = dict(data)
        raw = store.get(EXPIRATION_KEY)
        expirations: dict[str, list[str]] = {}
        if isinstance(raw, Mapping):
            for ns_key, record in raw.items():
                if not isinstance(record, (list, tuple)) or len(record) < 2:
                    logger.debug("Dropping malformed expiration record for %s", ns_key)
                    continue
                method, state = record[0], record[1]
                if state == ExpiryState.NEW:
                    expirations[ns_key] = [method, ExpiryState.LOADED.value]
                elif method == ExpiryPolicy.ON_REQUEST and state == ExpiryState.LOADED:
                    store.pop(ns_key, None)
                else:
                    expirations[ns_key] = [method, state]

        store[EXPIRATION_KEY] = expirations
        self._data = store

    def count(self) -> int:
        return sum(1 for key in self._data if key != EXPIRATION_KEY)

    def keys(self) -> list[str]:
        return [key for key in self._data if key != EXPIRATION_KEY]

    def clear(self) -> None:
        self._data = {}

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        try:
            return self.has(key)  # type: ignore[arg-type]
        except InvalidArgument:
            return False

    def _expirations(self) -> dict[str, list[str]]:
        expirations = self._data.get(EXPIRATION_KEY)
        if not isinstance(expirations, dict):
            expirations = {}
            self._data[EXPIRATION_KEY] = expirations
        return expirations

    def _prefix_key(self, key: str) -> str:
        if not key or not isinstance(key, str):
            raise InvalidArgument("Container key cannot be empty")
        ns_key = f"{self._namespace}.{key}" if self._namespace else key
        if ns_key == EXPIRATION_KEY:
            raise InvalidArgument(f"{EXPIRATION_KEY} is reserved for expiration tracking")
        return ns_key

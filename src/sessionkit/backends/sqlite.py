from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..clock import Clock
from ..config.options import OptionsLike
from ..context import RequestContext
from ..errors import BackendError
from ..models import StoredPayload
from .base import BaseBackend

logger = logging.getLogger(__name__)


_PAYLOADS_DDL = """
CREATE TABLE IF NOT EXISTS session_payloads (
    name TEXT NOT NULL,
    id TEXT NOT NULL,
    payload TEXT NOT NULL,
    expires_at INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (name, id)
);
"""

_CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_session_payloads_expires ON session_payloads(name, expires_at);",
]


def _ensure_pragmas(connection: sqlite3.Connection) -> None:
    connection.execute("PRAGMA foreign_keys = ON;")
    connection.execute("PRAGMA journal_mode = WAL;")


class SQLiteBackend(BaseBackend):
    """Stores session payloads as JSON rows in a SQLite database.

    The backend reports ``disabled`` until ``init`` has created the schema.
    """

    def __init__(
        self,
        name: str,
        db_path: str,
        *,
        context: Optional[RequestContext] = None,
        options: OptionsLike = None,
        clock: Optional[Clock] = None,
        initialised: bool = False,
    ) -> None:
        super().__init__(name, context=context, options=options, clock=clock)
        path = Path(db_path)
        if not path.is_absolute():
            path = Path.cwd() / path
        if path.suffix != ".db":
            path = path.with_suffix(".db")
        self._db_path = str(path)
        self._ready = initialised

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def available(self) -> bool:
        return self._ready

    def init(self) -> bool:
        """Create the database schema. Returns False if the database is unusable."""
        try:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            with sqlite3.connect(self._db_path) as connection:
                _ensure_pragmas(connection)
                connection.execute(_PAYLOADS_DDL)
                for statement in _CREATE_INDEXES:
                    connection.execute(statement)
                connection.commit()
        except (OSError, sqlite3.Error) as exc:
            logger.error("Could not initialise session database at %s: %s", self._db_path, exc)
            self._ready = False
            return False

        self._ready = True
        logger.info("Session database initialised at %s", self._db_path)
        return True

    def get_record(self, session_id: str) -> Optional[StoredPayload]:
        row = self._fetchone(
            "SELECT id, name, payload, expires_at, updated_at FROM session_payloads WHERE name = ? AND id = ?",
            (self.name, session_id),
        )
        return self._row_to_record(row)

    def _load(self, session_id: str) -> Optional[str]:
        record = self.get_record(session_id)
        return record.payload if record else None

    def _save(self, session_id: str, payload: str, expires_at: int) -> None:
        self._execute(
            "INSERT INTO session_payloads (name, id, payload, expires_at, updated_at) VALUES (?, ?, ?, ?, ?)"
            " ON CONFLICT(name, id) DO UPDATE SET payload = excluded.payload,"
            " expires_at = excluded.expires_at, updated_at = excluded.updated_at",
            (self.name, session_id, payload, expires_at, self._now_str()),
        )

    def _discard(self, session_id: str) -> None:
        self._execute(
            "DELETE FROM session_payloads WHERE name = ? AND id = ?",
            (self.name, session_id),
        )

    def _collect(self, now: int) -> int:
        return self._execute(
            "DELETE FROM session_payloads WHERE name = ? AND expires_at > 0 AND expires_at <= ?",
            (self.name, now),
        )

    def _execute(self, query: str, params: tuple = ()) -> int:
        try:
            with sqlite3.connect(self._db_path) as connection:
                _ensure_pragmas(connection)
                cursor = connection.execute(query, params)
                connection.commit()
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise BackendError(f"Database error: {exc}") from exc

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        try:
            with sqlite3.connect(self._db_path) as connection:
                connection.row_factory = sqlite3.Row
                _ensure_pragmas(connection)
                cursor = connection.execute(query, params)
                return cursor.fetchone()
        except sqlite3.Error as exc:
            raise BackendError(f"Database error: {exc}") from exc

    def _now_str(self) -> str:
        return datetime.fromtimestamp(self.clock.now(), tz=timezone.utc).replace(tzinfo=None).isoformat() + "Z"

    @staticmethod
    def _row_to_record(row: sqlite3.Row | None) -> Optional[StoredPayload]:
        if row is None:
            return None
        return StoredPayload(
            id=row["id"],
            name=row["name"],
            payload=row["payload"],
            expires_at=int(row["expires_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )


def _parse_ts(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1]
    return datetime.fromisoformat(value)

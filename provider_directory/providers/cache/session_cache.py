"""SQLite-backed session cache tier.

Persists one ``{"data": [...], "timestamp": ms}`` JSON blob per
``(session_id, key)`` so that a restarted process belonging to the same
session can recover the last good provider list.  Rows from other
sessions are invisible; rows untouched for longer than ``max_age_hours``
are pruned on :meth:`initialize`.

Uses sync ``sqlite3``: each operation touches one small row, so blocking
the event loop is negligible.  Freshness is checked on read against the
shared TTL and expired or unreadable rows are deleted.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from pathlib import Path

import structlog
from pydantic import ValidationError

from provider_directory.interfaces.cache_provider import ICacheProvider
from provider_directory.models.provider import CacheEntry
from provider_directory.utils.errors import CacheError
from provider_directory.utils.logging import get_logger

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    session_id   TEXT NOT NULL,
    cache_key    TEXT NOT NULL,
    payload_json TEXT NOT NULL,
    updated_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    PRIMARY KEY (session_id, cache_key)
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_{table}_updated ON {table}(updated_at);"
)

_UPSERT_SQL = """\
INSERT INTO {table} (session_id, cache_key, payload_json)
VALUES (?, ?, ?)
ON CONFLICT(session_id, cache_key)
DO UPDATE SET payload_json = excluded.payload_json,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT payload_json FROM {table} WHERE session_id = ? AND cache_key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE session_id = ? AND cache_key = ?;"

_PRUNE_SQL = """\
DELETE FROM {table}
WHERE updated_at < strftime('%Y-%m-%dT%H:%M:%fZ', 'now', '-{hours} hours');
"""


class SQLiteSessionCache(ICacheProvider):
    """Session-scoped persisted cache tier.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    session_id:
        Scope of every read and write.  A new id starts with an empty tier.
    ttl_ms:
        Entries older than this are treated as absent and deleted on read.
    table_name:
        Table to use; lets several caches share one database.
    max_age_hours:
        Rows (of any session) older than this are pruned on
        :meth:`initialize`.  ``0`` disables pruning.
    clock:
        Returns the current time in seconds; defaults to ``time.time``.
    """

    def __init__(
        self,
        db_path: str | Path,
        session_id: str,
        ttl_ms: int,
        table_name: str = "provider_cache",
        max_age_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        self._session_id = session_id
        self._ttl_ms = ttl_ms
        self._table = table_name
        self._max_age_hours = max_age_hours
        self._clock = clock
        self._initialized = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def session_id(self) -> str:
        return self._session_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the table and index, then prune stale rows.

        Called during startup; the first cache operation calls it otherwise.

        Raises
        ------
        CacheError
            If the database cannot be created or opened.
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                conn.execute(_CREATE_TABLE_SQL.format(table=self._table))
                conn.execute(_CREATE_INDEX_SQL.format(table=self._table))
                if self._max_age_hours > 0:
                    cursor = conn.execute(
                        _PRUNE_SQL.format(table=self._table, hours=self._max_age_hours)
                    )
                    if cursor.rowcount:
                        self._logger.info(
                            "session_cache_pruned",
                            table=self._table,
                            pruned=cursor.rowcount,
                            max_age_hours=self._max_age_hours,
                        )
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as exc:
            raise CacheError(
                message=f"Cannot initialize session cache at {self._db_path}: {exc}",
                source_name=self.get_provider_name(),
            ) from exc

        self._initialized = True
        self._logger.info(
            "session_cache_initialized",
            db_path=str(self._db_path),
            table=self._table,
            session_id=self._session_id,
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheEntry | None:
        """Return the session's entry for *key* if readable and within TTL."""
        payload = self._execute_fetch(_SELECT_SQL, (self._session_id, key))
        if payload is None:
            self._logger.debug("cache_miss", tier="session", key=key)
            return None

        try:
            entry = CacheEntry.model_validate_json(payload)
        except ValidationError as exc:
            self._logger.warning(
                "session_cache_unreadable",
                key=key,
                error=str(exc)[:200],
            )
            await self.delete(key)
            return None

        now_ms = int(self._clock() * 1000)
        if not entry.is_fresh(self._ttl_ms, now_ms):
            self._logger.debug("session_cache_expired", key=key, age_ms=entry.age_ms(now_ms))
            await self.delete(key)
            return None

        self._logger.debug("cache_hit", tier="session", key=key)
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._execute(_UPSERT_SQL, (self._session_id, key, entry.to_json()))
        self._logger.debug("cache_set", tier="session", key=key, records=len(entry.data))

    async def delete(self, key: str) -> None:
        self._execute(_DELETE_SQL, (self._session_id, key))
        self._logger.debug("cache_delete", tier="session", key=key)

    async def exists(self, key: str) -> bool:
        return (await self.get(key)) is not None

    def get_provider_name(self) -> str:
        return f"sqlite_session_cache:{self._table}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        """Open a new SQLite connection with WAL mode for concurrency."""
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _execute(self, sql: str, params: tuple) -> None:
        if not self._initialized:
            self.initialize()
        try:
            conn = self._connect()
            try:
                conn.execute(sql.format(table=self._table), params)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise CacheError(
                message=f"Session cache write failed: {exc}",
                source_name=self.get_provider_name(),
            ) from exc

    def _execute_fetch(self, sql: str, params: tuple) -> str | None:
        if not self._initialized:
            self.initialize()
        try:
            conn = self._connect()
            try:
                row = conn.execute(sql.format(table=self._table), params).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise CacheError(
                message=f"Session cache read failed: {exc}",
                source_name=self.get_provider_name(),
            ) from exc
        return row[0] if row else None

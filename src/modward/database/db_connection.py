"""
The process-wide SQLite connection.

Modward keeps one aiosqlite connection open for its whole lifetime. The
database runs in WAL mode so the mute sweep and message handlers can read
while a sanction is being written.

Writes are funnelled through :meth:`ConnectionManager.transaction`, which
holds an ``asyncio.Lock`` for the duration of the block and commits or
rolls back as a unit. Reads use :meth:`ConnectionManager.read` and take no
lock.

    await db_connection.open(path)

    async with db_connection.transaction() as conn:
        await MuteRepository.deactivate_active(conn, guild_id, user_id)
        await MuteRepository.insert(conn, ...)

    async with db_connection.read() as conn:
        mutes = await MuteRepository.get_active_for_guild(conn, guild_id)

    await db_connection.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from modward.util.logger import get_logger

logger = get_logger("db_connection")

# Applied in order right after connecting
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA busy_timeout = 5000",
    "PRAGMA temp_store = MEMORY",
)


class ConnectionManager:
    """Owns the single aiosqlite connection and serialises writers."""

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._path: Path | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def connection(self) -> aiosqlite.Connection:
        """The open connection.

        Raises:
            RuntimeError: If :meth:`open` has not been awaited yet.
        """
        if self._conn is None:
            raise RuntimeError("Database connection is not open; await db_connection.open(path) first.")
        return self._conn

    async def open(self, path: Path) -> None:
        """Connect to ``path`` (creating parent directories) and apply the pragmas.

        Opening an already open manager logs a warning and does nothing.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] Already open on %s, ignoring open(%s)", self._path, path)
            return

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        try:
            for pragma in CONNECTION_PRAGMAS:
                await conn.execute(pragma)
            await conn.commit()
        except Exception:
            await conn.close()
            raise

        self._conn = conn
        self._path = path
        logger.info("[DB CONNECTION] Opened %s", path)

    async def close(self) -> None:
        """Checkpoint the WAL into the main file and close. Safe to call twice."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        except aiosqlite.Error as exc:
            logger.warning("[DB CONNECTION] WAL checkpoint failed: %s", exc)
        finally:
            await conn.close()
        logger.info("[DB CONNECTION] Closed %s", self._path)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Exclusive write block: commit on success, roll back on any exception."""
        conn = self.connection
        async with self._write_lock:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Lock-free read access."""
        yield self.connection


# Shared connection used by the repositories at runtime
db_connection = ConnectionManager()

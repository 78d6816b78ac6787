"""
Startup and shutdown of the Modward database.

``await database.initialize(path)`` is the first thing the bot does after
loading configuration; a False return aborts startup. ``await
database.shutdown()`` runs after the gateway connection is closed.
"""

from __future__ import annotations

from pathlib import Path

from modward.database.db_connection import ConnectionManager, db_connection
from modward.database.db_schema import SchemaManager
from modward.util.logger import get_logger

logger = get_logger("database")

DEFAULT_DB_PATH = Path("data/app.db")


class Database:
    """Opens the shared connection and makes sure the schema exists."""

    def __init__(self, connection: ConnectionManager = db_connection, db_path: Path = DEFAULT_DB_PATH):
        self.connection = connection
        self.db_path = Path(db_path)
        self._ready = False

    @property
    def initialized(self) -> bool:
        return self._ready

    async def initialize(self, db_path: Path | None = None) -> bool:
        """Open ``db_path`` (or the configured path) and create missing tables.

        Errors are logged rather than raised; the connection is closed again
        if schema creation fails half way.
        """
        if self._ready:
            return True
        if db_path is not None:
            self.db_path = Path(db_path)

        try:
            await self.connection.open(self.db_path)
            await SchemaManager.initialize_schema(self.connection.connection)
        except Exception as exc:
            logger.error("[DATABASE] Could not prepare %s: %s", self.db_path, exc)
            await self.connection.close()
            return False

        self._ready = True
        logger.info("[DATABASE] Ready at %s", self.db_path)
        return True

    async def shutdown(self) -> None:
        if not self._ready:
            return
        self._ready = False
        await self.connection.close()
        logger.info("[DATABASE] Shut down")


database = Database()

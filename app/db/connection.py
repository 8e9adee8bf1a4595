"""Async SQLite connection handle."""

from pathlib import Path
from types import TracebackType

import aiosqlite
import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)


class DatabaseError(Exception):
    """Raised when the database cannot be opened or is used while closed."""

    pass


class Database:
    """Explicitly owned database handle.

    Open it once at startup (``connect`` or ``async with``) and pass it to the
    repositories; close it at shutdown. Connection failures surface as
    ``DatabaseError`` to the caller.
    """

    def __init__(self, path: str | Path | None = None):
        """Initialize database manager."""
        self.path = Path(path) if path is not None else settings.database_path
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database connection."""
        if self._connection is not None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(str(self.path))
            self._connection.row_factory = aiosqlite.Row
            # Transcript and analysis rows cascade from videos
            await self._connection.execute("PRAGMA foreign_keys = ON")
        except (aiosqlite.Error, OSError) as e:
            self._connection = None
            raise DatabaseError(f"Failed to open database {self.path}: {e}") from e

        logger.info("database_connected", type="sqlite", path=str(self.path))

    async def disconnect(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("database_disconnected")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the current database connection."""
        if not self._connection:
            raise DatabaseError("Database not connected")
        return self._connection

    async def init_schema(self, schema_path: str | Path | None = None) -> None:
        """Initialize database schema from SQL file."""
        if schema_path is None:
            schema_path = Path(__file__).parent / "schema.sql"

        with open(schema_path) as f:
            schema = f.read()

        await self.connection.executescript(schema)
        await self.connection.commit()

        logger.info("database_schema_initialized")

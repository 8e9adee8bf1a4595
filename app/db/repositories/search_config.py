"""Saved search repository for database operations."""

from datetime import datetime, UTC

import aiosqlite
import structlog

from app.models.search_config import SearchConfig, SearchConfigCreate

logger = structlog.get_logger(__name__)


class SearchConfigRepository:
    """Repository for saved search operations."""

    def __init__(self, connection: aiosqlite.Connection):
        """Initialize with database connection."""
        self.conn = connection

    async def upsert(self, config: SearchConfigCreate) -> None:
        """Create a saved search or refresh the one with the same label."""
        now = datetime.now(UTC).isoformat()
        await self.conn.execute(
            """
            INSERT INTO search_configs (user_id, search_phrase, search_name, creation_date)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(search_name) DO UPDATE SET
                user_id = excluded.user_id,
                search_phrase = excluded.search_phrase,
                creation_date = excluded.creation_date
            """,
            (config.user_id, config.search_phrase, config.search_name, now),
        )
        await self.conn.commit()
        logger.info("search_config_stored", search_name=config.search_name)

    async def get_by_name(self, search_name: str) -> SearchConfig | None:
        """Get a saved search by label, ignoring case."""
        cursor = await self.conn.execute(
            "SELECT * FROM search_configs WHERE LOWER(search_name) = LOWER(?)",
            (search_name,),
        )
        row = await cursor.fetchone()
        return SearchConfig.model_validate(dict(row)) if row else None

    async def list_all(self) -> list[SearchConfig]:
        """List saved searches, most recently refreshed first."""
        cursor = await self.conn.execute(
            "SELECT * FROM search_configs ORDER BY creation_date DESC"
        )
        rows = await cursor.fetchall()
        return [SearchConfig.model_validate(dict(row)) for row in rows]

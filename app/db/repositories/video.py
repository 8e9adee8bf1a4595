"""Video repository for database operations."""

from datetime import datetime
from typing import Any

import aiosqlite
import structlog

from app.models.video import UNKNOWN_SEARCH_NAME, Video, VideoMetadata

logger = structlog.get_logger(__name__)


def _to_row(video: VideoMetadata) -> dict[str, Any]:
    published_at = video.published_at.isoformat() if video.published_at else None
    return {
        "video_id": video.video_id,
        "search_name": video.search_name or UNKNOWN_SEARCH_NAME,
        "title": video.title,
        "description": video.description,
        "published_at": published_at,
        "duration_seconds": video.duration_seconds,
        "view_count": video.view_count,
        "url": video.url,
        "thumbnail_url": video.thumbnail_url,
        "channel_name": video.channel_name,
    }


def _from_row(row: aiosqlite.Row) -> Video:
    data = dict(row)
    if data.get("published_at"):
        data["published_at"] = datetime.fromisoformat(data["published_at"])
    return Video.model_validate(data)


class VideoRepository:
    """Repository for video CRUD operations."""

    def __init__(self, connection: aiosqlite.Connection):
        """Initialize with database connection."""
        self.conn = connection

    async def upsert(self, video: VideoMetadata) -> None:
        """Insert a video or overwrite every column of an existing one."""
        await self.conn.execute(
            """
            INSERT INTO videos (
                video_id, search_name, title, description, published_at,
                duration_seconds, view_count, url, thumbnail_url, channel_name
            )
            VALUES (
                :video_id, :search_name, :title, :description, :published_at,
                :duration_seconds, :view_count, :url, :thumbnail_url, :channel_name
            )
            ON CONFLICT(video_id) DO UPDATE SET
                search_name = excluded.search_name,
                title = excluded.title,
                description = excluded.description,
                published_at = excluded.published_at,
                duration_seconds = excluded.duration_seconds,
                view_count = excluded.view_count,
                url = excluded.url,
                thumbnail_url = excluded.thumbnail_url,
                channel_name = excluded.channel_name
            """,
            _to_row(video),
        )
        await self.conn.commit()
        logger.debug("video_upserted", video_id=video.video_id)

    async def get_by_video_id(self, video_id: str) -> Video | None:
        """Get a video by its identifier."""
        cursor = await self.conn.execute(
            "SELECT * FROM videos WHERE video_id = ?",
            (video_id,),
        )
        row = await cursor.fetchone()
        return _from_row(row) if row else None

    async def exists(self, video_id: str) -> bool:
        """Check if a video exists."""
        cursor = await self.conn.execute(
            "SELECT 1 FROM videos WHERE video_id = ? LIMIT 1",
            (video_id,),
        )
        row = await cursor.fetchone()
        return row is not None

    async def list_all(self, limit: int | None = None) -> list[Video]:
        """List all videos, newest first."""
        cursor = await self.conn.execute(
            "SELECT * FROM videos ORDER BY published_at DESC LIMIT ?",
            (limit if limit is not None else -1,),
        )
        rows = await cursor.fetchall()
        return [_from_row(row) for row in rows]

    async def list_by_search_name(self, search_name: str) -> list[Video]:
        """List videos for a search label (case-insensitive)."""
        cursor = await self.conn.execute(
            """
            SELECT * FROM videos
            WHERE LOWER(search_name) = LOWER(?)
            ORDER BY published_at DESC
            """,
            (search_name,),
        )
        rows = await cursor.fetchall()
        return [_from_row(row) for row in rows]

    async def count_by_search_name(self, search_name: str) -> int:
        """Count videos for a search label."""
        cursor = await self.conn.execute(
            "SELECT COUNT(*) FROM videos WHERE LOWER(search_name) = LOWER(?)",
            (search_name,),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def delete(self, video_id: str) -> bool:
        """Delete a video together with its transcript and analysis."""
        cursor = await self.conn.execute(
            "DELETE FROM videos WHERE video_id = ?",
            (video_id,),
        )
        await self.conn.commit()
        if cursor.rowcount > 0:
            logger.info("video_deleted", video_id=video_id)
            return True
        return False

    async def clear(self) -> None:
        """Delete every video; transcripts and analysis cascade."""
        await self.conn.execute("DELETE FROM videos")
        await self.conn.commit()
        logger.info("videos_cleared")

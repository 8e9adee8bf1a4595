"""Transcript repository for database operations."""

import aiosqlite
import structlog

from app.models.transcript import TRANSCRIPT_UNAVAILABLE, TranscriptRecord

logger = structlog.get_logger(__name__)


def _from_row(row: aiosqlite.Row) -> TranscriptRecord:
    return TranscriptRecord(
        video_id=row["video_id"],
        text=row["full_transcript"],
        language=row["language"],
    )


class TranscriptRepository:
    """Repository for transcript CRUD operations."""

    def __init__(self, connection: aiosqlite.Connection):
        """Initialize with database connection."""
        self.conn = connection

    async def upsert(self, transcript: TranscriptRecord) -> None:
        """Insert or overwrite the transcript for a video."""
        await self.conn.execute(
            """
            INSERT INTO transcripts (video_id, full_transcript, language)
            VALUES (?, ?, ?)
            ON CONFLICT(video_id) DO UPDATE SET
                full_transcript = excluded.full_transcript,
                language = excluded.language
            """,
            (transcript.video_id, transcript.text, transcript.language),
        )
        await self.conn.commit()
        logger.debug(
            "transcript_upserted",
            video_id=transcript.video_id,
            language=transcript.language,
        )

    async def get_by_video_id(self, video_id: str) -> TranscriptRecord | None:
        """Get a transcript by video ID."""
        cursor = await self.conn.execute(
            "SELECT * FROM transcripts WHERE video_id = ?",
            (video_id,),
        )
        row = await cursor.fetchone()
        return _from_row(row) if row else None

    async def list_all(self) -> list[TranscriptRecord]:
        """List all transcripts."""
        cursor = await self.conn.execute("SELECT * FROM transcripts ORDER BY video_id")
        rows = await cursor.fetchall()
        return [_from_row(row) for row in rows]

    async def count_available_by_search_name(self, search_name: str) -> int:
        """Count usable transcripts for a search label."""
        cursor = await self.conn.execute(
            """
            SELECT COUNT(*) FROM transcripts
            WHERE video_id IN (
                SELECT video_id FROM videos WHERE LOWER(search_name) = LOWER(?)
            )
            AND full_transcript != ?
            """,
            (search_name, TRANSCRIPT_UNAVAILABLE),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

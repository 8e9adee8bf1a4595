"""Analysis repository for database operations."""

import json
from typing import Any

import aiosqlite
import structlog

from app.models.analysis import AnalysisResult, StoredAnalysis

logger = structlog.get_logger(__name__)

# Columns holding arbitrary nested JSON
JSON_COLUMNS = (
    "symptoms",
    "medical_history_of_patient",
    "family_medical_history",
    "challenges_faced_during_diagnosis",
)


def _encode(value: Any) -> str | None:
    # Empty values are stored as NULL
    return json.dumps(value) if value else None


def _from_row(row: aiosqlite.Row) -> StoredAnalysis:
    data = dict(row)
    for column in JSON_COLUMNS:
        if data.get(column) is not None:
            data[column] = json.loads(data[column])
    return StoredAnalysis.model_validate(data)


class AnalysisRepository:
    """Repository for analysis CRUD operations."""

    def __init__(self, connection: aiosqlite.Connection):
        """Initialize with database connection."""
        self.conn = connection

    async def upsert(self, video_id: str, analysis: AnalysisResult) -> None:
        """Insert or overwrite the analysis for a video."""
        await self.conn.execute(
            """
            INSERT INTO analysis (
                video_id, video_type, name, current_age, onset_age, sex, location,
                symptoms, medical_history_of_patient, family_medical_history,
                challenges_faced_during_diagnosis, key_opinion,
                topic_of_information, details_of_information, headline, summary_of_news
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(video_id) DO UPDATE SET
                video_type = excluded.video_type,
                name = excluded.name,
                current_age = excluded.current_age,
                onset_age = excluded.onset_age,
                sex = excluded.sex,
                location = excluded.location,
                symptoms = excluded.symptoms,
                medical_history_of_patient = excluded.medical_history_of_patient,
                family_medical_history = excluded.family_medical_history,
                challenges_faced_during_diagnosis = excluded.challenges_faced_during_diagnosis,
                key_opinion = excluded.key_opinion,
                topic_of_information = excluded.topic_of_information,
                details_of_information = excluded.details_of_information,
                headline = excluded.headline,
                summary_of_news = excluded.summary_of_news
            """,
            (
                video_id,
                analysis.video_type,
                analysis.name,
                analysis.current_age,
                analysis.onset_age,
                analysis.sex,
                analysis.location,
                _encode(analysis.symptoms),
                _encode(analysis.medical_history_of_patient),
                _encode(analysis.family_medical_history),
                _encode(analysis.challenges_faced_during_diagnosis),
                analysis.key_opinion,
                analysis.topic_of_information,
                analysis.details_of_information,
                analysis.headline,
                analysis.summary_of_news,
            ),
        )
        await self.conn.commit()
        logger.debug("analysis_upserted", video_id=video_id, video_type=analysis.video_type)

    async def get_by_video_id(self, video_id: str) -> StoredAnalysis | None:
        """Get the analysis for a video."""
        cursor = await self.conn.execute(
            "SELECT * FROM analysis WHERE video_id = ?",
            (video_id,),
        )
        row = await cursor.fetchone()
        return _from_row(row) if row else None

    async def list_all(self) -> list[StoredAnalysis]:
        """List every stored analysis."""
        cursor = await self.conn.execute("SELECT * FROM analysis ORDER BY video_id")
        rows = await cursor.fetchall()
        return [_from_row(row) for row in rows]

    async def count_by_type(self, search_name: str, video_type: str) -> int:
        """Count analyses of one video type for a search label (case-insensitive)."""
        cursor = await self.conn.execute(
            """
            SELECT COUNT(*) FROM analysis
            WHERE LOWER(video_type) = LOWER(?)
            AND video_id IN (
                SELECT video_id FROM videos WHERE LOWER(search_name) = LOWER(?)
            )
            """,
            (video_type, search_name),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def list_content_items(
        self,
        search_name: str,
        video_types: list[str],
    ) -> list[dict[str, Any]]:
        """List analysed videos of the given types for a search label."""
        if not video_types:
            return []

        placeholders = ", ".join("?" for _ in video_types)
        cursor = await self.conn.execute(
            f"""
            SELECT v.video_id, v.title, v.description, v.url, v.published_at,
                   v.view_count, a.video_type
            FROM videos v
            JOIN analysis a ON v.video_id = a.video_id
            WHERE LOWER(v.search_name) = LOWER(?)
            AND LOWER(a.video_type) IN ({placeholders})
            ORDER BY v.published_at DESC
            """,
            (search_name, *(video_type.lower() for video_type in video_types)),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

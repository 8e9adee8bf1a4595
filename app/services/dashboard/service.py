"""Read-only dashboard queries: aggregate counts, single-video detail, content lists."""

import re
from datetime import datetime
from typing import Any

import structlog

from app.db.connection import Database
from app.db.repositories.analysis import AnalysisRepository
from app.db.repositories.search_config import SearchConfigRepository
from app.db.repositories.transcript import TranscriptRepository
from app.db.repositories.video import VideoRepository
from app.models.analysis import VIDEO_TYPE_KOL_INTERVIEW, VIDEO_TYPE_PATIENT_STORY
from app.services.dashboard.exceptions import DashboardNotFound, InvalidDashboardRequest

logger = structlog.get_logger(__name__)

_VIDEO_ID_PATTERN = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})",
    re.IGNORECASE,
)


def extract_video_id(url: str) -> str | None:
    """Pull the 11-character video id out of a watch, share or embed URL."""
    match = _VIDEO_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


def _iso(value: datetime | str | None) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, datetime) else value


class DashboardService:
    """Answers dashboard requests from the stored pipeline output."""

    def __init__(self, database: Database):
        conn = database.connection
        self.videos = VideoRepository(conn)
        self.transcripts = TranscriptRepository(conn)
        self.analyses = AnalysisRepository(conn)
        self.search_configs = SearchConfigRepository(conn)

    async def query(
        self,
        search_name: str | None = None,
        content_url: str | None = None,
        patient_stories: bool = False,
        kol_interviews: bool = False,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """Route a request to one of the three response shapes.

        A video URL is only looked up when a content type accompanies it;
        otherwise the request is answered for the search name.

        Raises:
            InvalidDashboardRequest: neither a search name nor a URL, a URL
                without content type or search name, or an unparsable URL
            DashboardNotFound: unknown video or saved search
        """
        if not search_name and not content_url:
            raise InvalidDashboardRequest("Either search name or video URL is required")

        if content_type and content_url:
            return {"type": "videoAnalysis", "data": await self.video_analysis(content_url)}

        if not search_name:
            raise InvalidDashboardRequest("Content type is required with a video URL")

        if patient_stories or kol_interviews:
            await self._require_search(search_name)
            items = await self.content_items(search_name, patient_stories, kol_interviews)
            return {"type": "contentItems", "data": items}

        return {"type": "dashboardData", "data": await self.dashboard_data(search_name)}

    async def _require_search(self, search_name: str) -> datetime:
        config = await self.search_configs.get_by_name(search_name)
        if config is None:
            raise DashboardNotFound(
                f'No data found for search name "{search_name.lower()}". '
                "Please run the pipeline for this search term."
            )
        return config.creation_date

    async def dashboard_data(self, search_name: str) -> dict[str, Any]:
        """Aggregate counts for a saved search."""
        last_updated = await self._require_search(search_name)
        data = {
            "videoCount": await self.videos.count_by_search_name(search_name),
            "transcriptCount": await self.transcripts.count_available_by_search_name(search_name),
            "patientStoriesCount": await self.analyses.count_by_type(search_name, VIDEO_TYPE_PATIENT_STORY),
            "kolInterviewsCount": await self.analyses.count_by_type(search_name, VIDEO_TYPE_KOL_INTERVIEW),
            "lastUpdated": _iso(last_updated),
        }
        logger.info("dashboard_data_served", search_name=search_name, video_count=data["videoCount"])
        return data

    async def video_analysis(self, content_url: str) -> dict[str, Any]:
        """Stored metadata, transcript availability and analysis for one video."""
        video_id = extract_video_id(content_url)
        if not video_id:
            raise InvalidDashboardRequest("Invalid YouTube URL")

        video = await self.videos.get_by_video_id(video_id)
        if video is None:
            raise DashboardNotFound(f"Video with ID {video_id} not found in the database.")

        transcript = await self.transcripts.get_by_video_id(video_id)
        analysis = await self.analyses.get_by_video_id(video_id)

        return {
            "video": {
                "video_id": video.video_id,
                "search_name": video.search_name,
                "title": video.title,
                "description": video.description,
                "published_date": _iso(video.published_at),
                "duration_seconds": video.duration_seconds,
                "view_count": video.view_count,
                "url": video.url,
                "channel_name": video.channel_name,
            },
            "transcriptAvailable": transcript is not None and transcript.available,
            "analysis": analysis.model_dump(exclude={"video_id"}) if analysis else None,
        }

    async def content_items(
        self,
        search_name: str,
        patient_stories: bool,
        kol_interviews: bool,
    ) -> list[dict[str, Any]]:
        """Analysed videos of the selected outcome types, newest first."""
        video_types = []
        if patient_stories:
            video_types.append(VIDEO_TYPE_PATIENT_STORY)
        if kol_interviews:
            video_types.append(VIDEO_TYPE_KOL_INTERVIEW)

        rows = await self.analyses.list_content_items(search_name, video_types)
        return [
            {
                "video_id": row["video_id"],
                "title": row["title"],
                "description": row["description"],
                "url": row["url"],
                "published_date": row["published_at"],
                "view_count": row["view_count"],
                "video_type": row["video_type"],
            }
            for row in rows
        ]

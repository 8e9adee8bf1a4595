"""Pipeline orchestrator - search, transcripts and analysis for a saved search."""

from collections.abc import Awaitable, Callable
from typing import Any

import aiosqlite
import structlog

from app.db.connection import Database
from app.db.repositories.analysis import AnalysisRepository
from app.db.repositories.search_config import SearchConfigRepository
from app.db.repositories.transcript import TranscriptRepository
from app.db.repositories.video import VideoRepository
from app.models.analysis import AnalysisResult
from app.models.search_config import DEFAULT_USER_ID, SearchConfigCreate
from app.models.transcript import TranscriptRecord
from app.models.video import VideoMetadata, VideoSearchOptions
from app.services.analysis.analyzer import TranscriptAnalyzer
from app.services.web.scraper import ScrapedPage, scrape_page
from app.services.youtube.captions import TranscriptFetcher
from app.services.youtube.search import VideoSearchPaginator, get_video_details

logger = structlog.get_logger(__name__)

PAGE_TRANSCRIPT_LANGUAGE = "unknown"

AnalysisOutcome = AnalysisResult | list[AnalysisResult] | None


class PipelineOrchestrator:
    """Coordinates search, transcript fetching and analysis against one database.

    Collaborators are created on first use so that, for example, analysing
    stored transcripts does not require YouTube API keys.
    """

    def __init__(
        self,
        database: Database,
        paginator: VideoSearchPaginator | None = None,
        transcript_fetcher: TranscriptFetcher | None = None,
        analyzer: TranscriptAnalyzer | None = None,
        scraper: Callable[[str], Awaitable[ScrapedPage | None]] = scrape_page,
    ):
        conn = database.connection
        self.video_repo = VideoRepository(conn)
        self.transcript_repo = TranscriptRepository(conn)
        self.analysis_repo = AnalysisRepository(conn)
        self.search_config_repo = SearchConfigRepository(conn)

        self._paginator = paginator
        self._transcript_fetcher = transcript_fetcher
        self._analyzer = analyzer
        self._scraper = scraper

    @property
    def paginator(self) -> VideoSearchPaginator:
        if self._paginator is None:
            self._paginator = VideoSearchPaginator()
        return self._paginator

    @property
    def transcript_fetcher(self) -> TranscriptFetcher:
        if self._transcript_fetcher is None:
            self._transcript_fetcher = TranscriptFetcher()
        return self._transcript_fetcher

    @property
    def analyzer(self) -> TranscriptAnalyzer:
        if self._analyzer is None:
            self._analyzer = TranscriptAnalyzer.from_settings()
        return self._analyzer

    async def _store_video(self, video: VideoMetadata) -> bool:
        try:
            await self.video_repo.upsert(video)
        except aiosqlite.Error as e:
            logger.error("video_store_failed", video_id=video.video_id, error=str(e))
            return False
        return True

    async def _store_analysis(self, video_id: str, result: AnalysisOutcome) -> None:
        # One analysis row per identifier; pages keep their first subject
        record = result[0] if isinstance(result, list) and result else result
        if isinstance(record, AnalysisResult):
            await self.analysis_repo.upsert(video_id, record)

    async def fetch_videos(
        self,
        search_name: str,
        phrases: list[str],
        options: VideoSearchOptions | None = None,
        user_id: str = DEFAULT_USER_ID,
    ) -> dict[str, Any]:
        """Search every phrase, storing each batch under the search label as it arrives.

        Returns:
            Summary of the run, including the ids delivered
        """
        logger.info("video_fetch_started", search_name=search_name, phrases=phrases)

        video_ids: list[str] = []
        seen: set[str] = set()
        videos_delivered = 0
        videos_stored = 0
        videos_failed = 0

        for phrase in phrases:
            async for batch in self.paginator.iter_batches(phrase, options):
                videos_delivered += len(batch)
                for video in batch:
                    labelled = video.model_copy(update={"search_name": search_name})
                    if await self._store_video(labelled):
                        videos_stored += 1
                    else:
                        videos_failed += 1
                    if video.video_id not in seen:
                        seen.add(video.video_id)
                        video_ids.append(video.video_id)

        await self.search_config_repo.upsert(
            SearchConfigCreate(
                search_name=search_name,
                search_phrase=", ".join(phrases),
                user_id=user_id,
            )
        )

        summary = {
            "search_name": search_name,
            "phrases": phrases,
            "videos_delivered": videos_delivered,
            "videos_stored": videos_stored,
            "videos_failed": videos_failed,
            "video_ids": video_ids,
        }
        logger.info(
            "video_fetch_completed",
            search_name=search_name,
            videos_delivered=videos_delivered,
            videos_stored=videos_stored,
            videos_failed=videos_failed,
        )
        return summary

    async def fetch_video(self, video_id: str, search_name: str | None = None) -> VideoMetadata | None:
        """Look up and store a single video."""
        video = await get_video_details(video_id, client=self.paginator.client)
        if video is None:
            logger.warning("video_lookup_failed", video_id=video_id)
            return None

        video = video.model_copy(update={"search_name": search_name})
        await self._store_video(video)
        return video

    async def fetch_transcripts(self, video_ids: list[str]) -> list[TranscriptRecord]:
        """Fetch and store transcripts; unavailable videos get the sentinel record."""
        records = []
        for video_id in video_ids:
            record = await self.transcript_fetcher.fetch(video_id)
            records.append(record)

            if not await self.video_repo.exists(video_id):
                logger.warning("transcript_not_stored_unknown_video", video_id=video_id)
                continue
            await self.transcript_repo.upsert(record)

        available = sum(1 for record in records if record.available)
        logger.info("transcripts_fetched", requested=len(video_ids), available=available)
        return records

    async def analyze_videos(self, video_ids: list[str]) -> dict[str, AnalysisOutcome]:
        """Analyse stored transcripts and store the results."""
        results: dict[str, AnalysisOutcome] = {}
        for video_id in video_ids:
            transcript = await self.transcript_repo.get_by_video_id(video_id)
            if transcript is None or not transcript.available:
                logger.info("analysis_skipped_no_transcript", video_id=video_id)
                results[video_id] = None
                continue

            video = await self.video_repo.get_by_video_id(video_id)
            title = video.title if video and video.title else f"Content {video_id}"

            result = await self.analyzer.analyze(video_id, transcript.text, title)
            results[video_id] = result
            if result is not None:
                await self._store_analysis(video_id, result)

        analyzed = sum(1 for result in results.values() if result is not None)
        logger.info("videos_analyzed", requested=len(video_ids), analyzed=analyzed)
        return results

    async def ingest_page(self, url: str, search_name: str | None = None) -> list[AnalysisResult] | None:
        """Scrape a web page, store it as a video row with its text as transcript, and analyse it."""
        page = await self._scraper(url)
        if page is None:
            return None

        await self._store_video(
            VideoMetadata(video_id=url, title=page.title, url=url, search_name=search_name)
        )
        await self.transcript_repo.upsert(
            TranscriptRecord(video_id=url, text=page.content, language=PAGE_TRANSCRIPT_LANGUAGE)
        )

        result = await self.analyzer.analyze(url, page.content, page.title)
        if result is None:
            return None

        results = result if isinstance(result, list) else [result]
        await self._store_analysis(url, results)
        logger.info("page_ingested", url=url, subjects=len(results))
        return results

    async def run(
        self,
        search_name: str,
        phrases: list[str],
        options: VideoSearchOptions | None = None,
        user_id: str = DEFAULT_USER_ID,
    ) -> dict[str, Any]:
        """Search, then fetch transcripts and analyses for every delivered video."""
        fetch_summary = await self.fetch_videos(search_name, phrases, options, user_id)
        video_ids = fetch_summary["video_ids"]

        transcripts = await self.fetch_transcripts(video_ids)
        with_transcript = [record.video_id for record in transcripts if record.available]

        analyses = await self.analyze_videos(with_transcript)

        summary = {
            "search_name": search_name,
            "videos_delivered": fetch_summary["videos_delivered"],
            "videos_stored": fetch_summary["videos_stored"],
            "transcripts_available": len(with_transcript),
            "analyses_stored": sum(1 for result in analyses.values() if result is not None),
        }
        logger.info("pipeline_completed", **summary)
        return summary

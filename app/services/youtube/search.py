"""Date-chunked, paginated YouTube search that delivers videos batch by batch."""

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from googleapiclient.errors import HttpError

from app.core.config import settings
from app.models.video import VideoMetadata, VideoSearchOptions
from app.services.youtube.client import YouTubeClient
from app.services.youtube.exceptions import QuotaExhaustedError
from app.services.youtube.time_utils import (
    date_chunks,
    format_rfc3339,
    parse_iso8601_duration,
    parse_timestamp,
    subtract_years,
)

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 50
DETAIL_PARTS = "snippet,contentDetails,statistics"

BatchCallback = Callable[[list[VideoMetadata]], Awaitable[None]]


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _thumbnail_url(snippet: dict[str, Any]) -> str | None:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def _item_id(item: Any) -> str | None:
    if isinstance(item, VideoMetadata):
        return item.video_id
    raw_id = item.get("id")
    if isinstance(raw_id, dict):
        return raw_id.get("videoId")
    return raw_id


def video_from_api_item(item: dict[str, Any], search_name: str | None = None) -> VideoMetadata | None:
    """Convert a videos.list item into VideoMetadata; None when the item has no id."""
    video_id = _item_id(item)
    if not video_id:
        return None

    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    statistics = item.get("statistics") or {}

    try:
        view_count = int(statistics.get("viewCount") or 0)
    except (TypeError, ValueError):
        view_count = 0

    return VideoMetadata(
        video_id=video_id,
        title=snippet.get("title") or "",
        description=snippet.get("description") or "",
        published_at=parse_timestamp(snippet.get("publishedAt")),
        duration_seconds=parse_iso8601_duration(content_details.get("duration") or "PT0S"),
        view_count=max(view_count, 0),
        url=f"https://www.youtube.com/watch?v={video_id}",
        thumbnail_url=_thumbnail_url(snippet),
        channel_name=snippet.get("channelTitle") or "",
        search_name=search_name,
    )


def unique_by_id(items: list[Any]) -> list[Any]:
    """Drop repeated identifiers, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for item in items:
        item_id = _item_id(item)
        if item_id in seen:
            continue
        seen.add(item_id)
        unique.append(item)
    return unique


class VideoSearchPaginator:
    """Walks a query across date chunks and result pages.

    Each page of search hits is resolved to full details in one batched
    lookup and handed to the caller before the next page is requested.
    Quota errors rotate the API key and retry the same request; when the
    pool is exhausted the walk stops quietly with whatever was delivered.
    Any other API error propagates.
    """

    def __init__(
        self,
        client: YouTubeClient | None = None,
        page_size: int | None = None,
        chunk_days: int | None = None,
    ):
        self.client = client or YouTubeClient()
        self.page_size = min(page_size or settings.search_page_size, MAX_PAGE_SIZE)
        self.chunk_days = chunk_days or settings.search_chunk_days

    def _window(self, options: VideoSearchOptions) -> tuple[datetime, datetime]:
        end = _as_utc(options.end_date) if options.end_date else datetime.now(timezone.utc)
        if options.start_date:
            start = _as_utc(options.start_date)
        else:
            start = subtract_years(end, options.years_back or settings.search_years_back)
        return start, end

    async def _search_page(
        self,
        query: str,
        options: VideoSearchOptions,
        chunk: tuple[datetime, datetime],
        page_size: int,
        page_token: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": page_size,
            "order": options.order or settings.search_order,
            "regionCode": options.region_code or settings.search_region_code,
            "relevanceLanguage": options.language or settings.search_language,
            "publishedAfter": format_rfc3339(chunk[0]),
            "publishedBefore": format_rfc3339(chunk[1]),
            "videoDuration": "any",
        }
        if page_token:
            params["pageToken"] = page_token

        return await self.client.execute_async(
            lambda service: service.search().list(**params),
            label="search page",
        )

    async def _details(self, video_ids: list[str]) -> list[dict[str, Any]]:
        response = await self.client.execute_async(
            lambda service: service.videos().list(part=DETAIL_PARTS, id=",".join(video_ids)),
            label="video details batch",
        )
        return response.get("items") or []

    async def iter_batches(
        self,
        query: str,
        options: VideoSearchOptions | None = None,
    ) -> AsyncIterator[list[VideoMetadata]]:
        """Yield deduplicated VideoMetadata batches, one per search page."""
        options = options or VideoSearchOptions()
        cap = options.max_results or None
        start, end = self._window(options)
        chunks = date_chunks(start, end, self.chunk_days)
        delivered = 0

        logger.info(
            "video_search_started",
            query=query,
            start=format_rfc3339(start),
            end=format_rfc3339(end),
            chunks=len(chunks),
            max_results=cap,
        )

        for chunk in chunks:
            logger.debug("video_search_chunk", start=format_rfc3339(chunk[0]), end=format_rfc3339(chunk[1]))
            page_token: str | None = None

            while True:
                page_size = self.page_size if cap is None else min(self.page_size, cap - delivered)
                try:
                    response = await self._search_page(query, options, chunk, page_size, page_token)
                    items = response.get("items") or []
                    video_ids = [vid for vid in (_item_id(item) for item in items) if vid]
                    if not video_ids:
                        logger.debug("video_search_page_empty", page_token=page_token)
                        break
                    details = await self._details(video_ids)
                except QuotaExhaustedError:
                    logger.warning("video_search_stopped_quota", query=query, delivered=delivered)
                    return

                videos = unique_by_id(
                    [video for video in (video_from_api_item(item) for item in details) if video]
                )
                if videos:
                    delivered += len(videos)
                    logger.info("video_batch_fetched", count=len(videos), delivered=delivered)
                    yield videos

                if cap is not None and delivered >= cap:
                    logger.info("video_search_cap_reached", max_results=cap)
                    return

                page_token = response.get("nextPageToken")
                if not page_token:
                    break

        if delivered == 0:
            logger.warning("video_search_no_results", query=query)
        logger.info("video_search_completed", query=query, delivered=delivered)

    async def search_videos(
        self,
        query: str,
        options: VideoSearchOptions | None = None,
        on_batch: BatchCallback | None = None,
    ) -> int:
        """Run the search, awaiting `on_batch` for each batch; returns the total delivered."""
        total = 0
        async for batch in self.iter_batches(query, options):
            total += len(batch)
            if on_batch is not None:
                await on_batch(batch)
        return total


async def get_video_details(
    video_id: str,
    client: YouTubeClient | None = None,
) -> VideoMetadata | None:
    """Look up a single video; None when it is missing or the lookup fails."""
    client = client or YouTubeClient()
    try:
        response = await client.execute_async(
            lambda service: service.videos().list(part=DETAIL_PARTS, id=video_id),
            label="video details",
        )
    except QuotaExhaustedError:
        logger.warning("video_details_quota_exhausted", video_id=video_id)
        return None
    except HttpError as e:
        logger.warning("video_details_failed", video_id=video_id, error=str(e))
        return None

    items = response.get("items") or []
    if not items:
        logger.info("video_not_found", video_id=video_id)
        return None
    return video_from_api_item(items[0])

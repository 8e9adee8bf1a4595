"""YouTube transcript fetching from caption tracks using yt-dlp."""

import asyncio
import re
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog
import yt_dlp

from app.core.config import settings
from app.models.transcript import LANGUAGE_AUTO, TranscriptRecord
from app.services.youtube.exceptions import CaptionDownloadError

logger = structlog.get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=2)

_TIMESTAMP_PATTERN = re.compile(r'\d{2}:\d{2}:\d{2}\.\d{3} --> \d{2}:\d{2}:\d{2}\.\d{3}')

YDL_OPTIONS: dict[str, Any] = {
    "quiet": True,
    "no_warnings": True,
    "skip_download": True,
    # Help avoid bot detection
    "extractor_args": {"youtube": {"player_client": ["web", "android"]}},
    "http_headers": {"User-Agent": settings.scrape_user_agent},
}


def _parse_vtt_to_text(vtt_content: str) -> str:
    """Parse VTT content into plain transcript text."""
    cues: list[str] = []
    current_cue: list[str] | None = None

    for line in vtt_content.split('\n'):
        line = line.strip()

        # Skip header and empty lines
        if not line or line == 'WEBVTT' or line.startswith('Kind:') or line.startswith('Language:'):
            continue

        if _TIMESTAMP_PATTERN.match(line):
            if current_cue:
                cues.append(' '.join(current_cue))
            current_cue = []
        elif current_cue is not None:
            # Remove cue tags and [Music] style annotations
            clean_text = re.sub(r'<[^>]+>', '', line)
            clean_text = re.sub(r'\[.*?\]', '', clean_text).strip()
            if clean_text:
                current_cue.append(clean_text)

    if current_cue:
        cues.append(' '.join(current_cue))

    # Rolling auto-captions repeat each line in the following cue
    deduped: list[str] = []
    seen_texts = set()
    for cue in cues:
        if cue not in seen_texts:
            seen_texts.add(cue)
            deduped.append(cue)

    return re.sub(r'\s+', ' ', ' '.join(deduped)).strip()


def _is_translated(track: dict[str, Any]) -> bool:
    return "tlang=" in (track.get("url") or "")


def _vtt_track(tracks: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    """First untranslated WebVTT track from a yt-dlp track list."""
    for track in tracks or []:
        if track.get("ext") == "vtt" and track.get("url") and not _is_translated(track):
            return track
    return None


def _language_tracks(info: dict[str, Any], lang: str) -> list[dict[str, Any]]:
    """Candidate tracks for one language: manual first, then original-language automatic."""
    manual = info.get("subtitles") or {}
    automatic = info.get("automatic_captions") or {}
    candidates = [
        _vtt_track(manual.get(lang)),
        _vtt_track(automatic.get(f"{lang}-orig")),
        _vtt_track(automatic.get(lang)),
    ]
    return [track for track in candidates if track]


def _fallback_track(info: dict[str, Any]) -> dict[str, Any] | None:
    """First untranslated track in any language."""
    for source in ("subtitles", "automatic_captions"):
        for tracks in (info.get(source) or {}).values():
            track = _vtt_track(tracks)
            if track:
                return track
    return None


class TranscriptFetcher:
    """Fetches transcript text for a video, trying languages in order.

    The first non-empty transcript wins and is tagged with its language.
    When no listed language works, one untranslated track of any language
    is tried and tagged 'auto'. Otherwise the unavailable record is returned.
    """

    def __init__(
        self,
        languages: list[str] | None = None,
        ydl_factory: Callable[[], Any] | None = None,
    ):
        self.languages = languages or settings.transcript_language_list
        self._ydl_factory = ydl_factory or (lambda: yt_dlp.YoutubeDL(YDL_OPTIONS))

    def _download_text(self, ydl: Any, track: dict[str, Any]) -> str:
        try:
            raw = ydl.urlopen(track["url"]).read()
        except Exception as e:
            raise CaptionDownloadError(f"Failed to download caption track: {e}") from e

        vtt_content = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        return _parse_vtt_to_text(vtt_content)

    def fetch_sync(self, video_id: str) -> TranscriptRecord:
        """Synchronous transcript fetch."""
        url = f"https://www.youtube.com/watch?v={video_id}"

        with self._ydl_factory() as ydl:
            try:
                info = ydl.extract_info(url, download=False)
            except yt_dlp.utils.DownloadError as e:
                logger.warning("caption_listing_failed", video_id=video_id, error=str(e))
                return TranscriptRecord.unavailable(video_id)

            if not info:
                return TranscriptRecord.unavailable(video_id)

            for lang in self.languages:
                for track in _language_tracks(info, lang):
                    try:
                        text = self._download_text(ydl, track)
                    except CaptionDownloadError as e:
                        logger.warning("caption_download_failed", video_id=video_id, language=lang, error=str(e))
                        continue
                    if text:
                        logger.info("transcript_fetched", video_id=video_id, language=lang, text_length=len(text))
                        return TranscriptRecord(video_id=video_id, text=text, language=lang)
                logger.debug("no_transcript_in_language", video_id=video_id, language=lang)

            track = _fallback_track(info)
            if track:
                try:
                    text = self._download_text(ydl, track)
                except CaptionDownloadError as e:
                    logger.warning("caption_download_failed", video_id=video_id, language=LANGUAGE_AUTO, error=str(e))
                    text = ""
                if text:
                    logger.info("transcript_fetched", video_id=video_id, language=LANGUAGE_AUTO, text_length=len(text))
                    return TranscriptRecord(video_id=video_id, text=text, language=LANGUAGE_AUTO)

        logger.info("transcript_unavailable", video_id=video_id)
        return TranscriptRecord.unavailable(video_id)

    async def fetch(self, video_id: str) -> TranscriptRecord:
        """Fetch a transcript asynchronously.

        Args:
            video_id: YouTube video ID

        Returns:
            TranscriptRecord, the unavailable sentinel when nothing could be fetched
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, self.fetch_sync, video_id)

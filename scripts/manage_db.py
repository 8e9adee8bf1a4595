#!/usr/bin/env python3
"""
Database maintenance: list, delete, clear, and load records from JSON.

Usage:
    python scripts/manage_db.py --list videos
    python scripts/manage_db.py --list analysis --video-id dQw4w9WgXcQ
    python scripts/manage_db.py --delete dQw4w9WgXcQ
    python scripts/manage_db.py --metadata-file data/videos.json --transcripts-file data/transcripts.json --analysis-file data/analysis.json
    python scripts/manage_db.py --create-video '{"video_id": "abc", "title": "Example"}'
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError
from app.db.repositories.analysis import AnalysisRepository
from app.db.repositories.search_config import SearchConfigRepository
from app.db.repositories.transcript import TranscriptRepository
from app.db.repositories.video import VideoRepository
from app.models.analysis import AnalysisResult
from app.models.search_config import DEFAULT_USER_ID, SearchConfigCreate
from app.models.transcript import TranscriptRecord
from app.models.video import UNKNOWN_SEARCH_NAME, VideoMetadata
from app.services.pipeline.files import read_json_list

setup_logging()
logger = get_logger(__name__)

TABLES = ("videos", "transcripts", "analysis", "search_configs")


def video_from_json(data: dict[str, Any]) -> VideoMetadata:
    """Accept both the stored field names and the fetcher's older export keys."""
    video_id = data.get("video_id") or data.get("id")
    return VideoMetadata.model_validate({
        **data,
        "video_id": video_id,
        "url": data.get("url") or f"https://www.youtube.com/watch?v={video_id}",
        "duration_seconds": data.get("duration_seconds") or data.get("durationInSeconds") or 0,
        "view_count": data.get("view_count") or data.get("viewCount") or 0,
        "published_at": data.get("published_at") or data.get("publishedDate") or None,
        "search_name": data.get("search_name") or UNKNOWN_SEARCH_NAME,
    })


def transcript_from_json(data: dict[str, Any]) -> TranscriptRecord:
    return TranscriptRecord(
        video_id=data.get("videoId") or data["video_id"],
        text=data.get("transcript") or data.get("text") or "",
        language=data.get("language") or "unknown",
    )


class DatabaseManager:
    """Maintenance operations over the repositories."""

    def __init__(self, db: Database):
        self.videos = VideoRepository(db.connection)
        self.transcripts = TranscriptRepository(db.connection)
        self.analyses = AnalysisRepository(db.connection)
        self.search_configs = SearchConfigRepository(db.connection)

    async def list_records(self, table: str, video_id: str | None = None) -> list[dict[str, Any]]:
        """Rows of one table as JSON-ready dicts."""
        if table == "videos":
            if video_id:
                video = await self.videos.get_by_video_id(video_id)
                records = [video] if video else []
            else:
                records = await self.videos.list_all()
        elif table == "transcripts":
            records = await self.transcripts.list_all()
        elif table == "analysis":
            records = await self.analyses.list_all()
        elif table == "search_configs":
            records = await self.search_configs.list_all()
        else:
            raise ValueError(f"Invalid table name: {table}. Use one of {', '.join(TABLES)}.")

        if video_id and table in ("transcripts", "analysis"):
            records = [record for record in records if record.video_id == video_id]
        return [record.model_dump(mode="json") for record in records]

    async def store_analysis(self, data: dict[str, Any]) -> None:
        video_id = data.get("videoId") or data["video_id"]
        await self.analyses.upsert(video_id, AnalysisResult.model_validate(data))

    async def load_files(self, args: argparse.Namespace) -> None:
        """Bulk-load the JSON files produced by the other scripts."""
        if args.metadata_file:
            for item in read_json_list(args.metadata_file):
                await self.videos.upsert(video_from_json(item))
            logger.info("metadata_file_loaded", path=args.metadata_file)

        if args.transcripts_file:
            for item in read_json_list(args.transcripts_file):
                await self.transcripts.upsert(transcript_from_json(item))
            logger.info("transcripts_file_loaded", path=args.transcripts_file)

        if args.analysis_file:
            for item in read_json_list(args.analysis_file):
                await self.store_analysis(item)
            logger.info("analysis_file_loaded", path=args.analysis_file)

        if args.search_config_file:
            for item in read_json_list(args.search_config_file):
                await self.search_configs.upsert(
                    SearchConfigCreate(
                        search_name=item["search_name"],
                        search_phrase=item["search_phrase"],
                        user_id=item.get("user_id") or DEFAULT_USER_ID,
                    )
                )
            logger.info("search_config_file_loaded", path=args.search_config_file)


async def main(args: argparse.Namespace) -> int:
    try:
        async with Database() as db:
            await db.init_schema()
            manager = DatabaseManager(db)

            if args.clear:
                await manager.videos.clear()

            if args.list:
                records = await manager.list_records(args.list.lower(), args.video_id)
                logger.info("records_listed", table=args.list, count=len(records))
                print(json.dumps(records, indent=2))

            if args.delete:
                if not await manager.videos.delete(args.delete):
                    logger.warning("record_not_found", video_id=args.delete)

            if args.create_video:
                await manager.videos.upsert(video_from_json(json.loads(args.create_video)))
            if args.create_transcript:
                await manager.transcripts.upsert(transcript_from_json(json.loads(args.create_transcript)))
            if args.create_analysis:
                await manager.store_analysis(json.loads(args.create_analysis))

            await manager.load_files(args)

    except (DatabaseError, ValueError, KeyError, OSError, ValidationError) as e:
        logger.error("database_management_failed", error=str(e))
        return 1

    logger.info("database_management_completed")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the pipeline database")
    parser.add_argument("--clear", action="store_true", help="Delete every video (transcripts and analyses cascade)")
    parser.add_argument("--list", metavar="TABLE", help=f"List records from one of: {', '.join(TABLES)}")
    parser.add_argument("--video-id", help="Filter --list to one video")
    parser.add_argument("--delete", metavar="VIDEO_ID", help="Delete a video and its dependent rows")
    parser.add_argument("--create-video", metavar="JSON", help="Store a video record")
    parser.add_argument("--create-transcript", metavar="JSON", help="Store a transcript record")
    parser.add_argument("--create-analysis", metavar="JSON", help="Store an analysis record")
    parser.add_argument("--metadata-file", help="Video metadata JSON from fetch_videos.py")
    parser.add_argument("--transcripts-file", help="Transcripts JSON from fetch_transcripts.py")
    parser.add_argument("--analysis-file", help="Analysis JSON from analyze_transcripts.py")
    parser.add_argument("--search-config-file", help="Saved searches JSON")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

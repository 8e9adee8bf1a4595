#!/usr/bin/env python3
"""
Search YouTube for a saved search and store the matching videos.

Each search phrase is walked across two-week date windows; every page of
results is stored (and optionally appended to JSON files) as soon as it
arrives. The saved search is refreshed at the end.

Usage:
    python scripts/fetch_videos.py --search-name "myasthenia gravis"
    python scripts/fetch_videos.py --search-name mg --search-phrase "myasthenia gravis,mg patient story" --max-results 200
    python scripts/fetch_videos.py --video-id dQw4w9WgXcQ --search-name mg
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.exceptions import ConfigurationError
from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError
from app.models.video import VideoMetadata, VideoSearchOptions
from app.services.pipeline.files import append_unique, write_json
from app.services.pipeline.orchestrator import PipelineOrchestrator
from app.services.youtube.search import VideoSearchPaginator
from app.services.youtube.time_utils import parse_timestamp

setup_logging()
logger = get_logger(__name__)


class FileRecorder:
    """Mirrors delivered videos into the metadata and id files."""

    def __init__(self, output_file: str | None, video_ids_file: str | None):
        self.output_file = output_file
        self.video_ids_file = video_ids_file

    def reset(self) -> None:
        for path in (self.output_file, self.video_ids_file):
            if path:
                write_json(path, [])

    def record(self, videos: list[VideoMetadata]) -> None:
        if self.output_file:
            append_unique(
                self.output_file,
                [video.model_dump(mode="json") for video in videos],
                key=lambda item: item["video_id"],
            )
        if self.video_ids_file:
            append_unique(self.video_ids_file, [video.video_id for video in videos])


class RecordingPaginator(VideoSearchPaginator):
    """Paginator that also writes each labelled batch to the JSON files."""

    def __init__(self, recorder: FileRecorder, search_name: str):
        super().__init__()
        self.recorder = recorder
        self.search_name = search_name

    async def iter_batches(self, query, options=None):
        async for batch in super().iter_batches(query, options):
            self.recorder.record(
                [video.model_copy(update={"search_name": self.search_name}) for video in batch]
            )
            yield batch


async def main(args: argparse.Namespace) -> int:
    search_name = args.search_name or args.disease
    recorder = FileRecorder(args.output_file, args.video_ids_file)

    try:
        async with Database() as db:
            await db.init_schema()

            if args.video_id:
                orchestrator = PipelineOrchestrator(db)
                label = search_name or args.video_id
                video = await orchestrator.fetch_video(args.video_id, search_name=label)
                if video is None:
                    logger.warning("video_metadata_not_found", video_id=args.video_id)
                    return 1
                recorder.record([video])
                logger.info("video_processed", video_id=video.video_id, search_name=label)
                return 0

            phrases = [p.strip() for p in (args.search_phrase or search_name).split(",") if p.strip()]
            options = VideoSearchOptions(
                max_results=args.max_results,
                start_date=parse_timestamp(args.start_date),
                end_date=parse_timestamp(args.end_date),
            )

            recorder.reset()
            orchestrator = PipelineOrchestrator(db, paginator=RecordingPaginator(recorder, search_name))
            summary = await orchestrator.fetch_videos(search_name, phrases, options)
            logger.info(
                "fetch_videos_finished",
                search_name=search_name,
                videos_delivered=summary["videos_delivered"],
                videos_stored=summary["videos_stored"],
            )
            return 0

    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return 1
    except DatabaseError as e:
        logger.error("database_error", error=str(e))
        return 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch YouTube video metadata for a saved search",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--search-name", help="Label the videos are stored under")
    parser.add_argument("--disease", help="Alias for --search-name")
    parser.add_argument("--search-phrase", help="Comma-separated search phrases (default: the search name)")
    parser.add_argument("--max-results", type=int, help="Stop after this many videos per phrase")
    parser.add_argument("--start-date", help="Earliest publish date (YYYY-MM-DD)")
    parser.add_argument("--end-date", help="Latest publish date (YYYY-MM-DD)")
    parser.add_argument("--video-id", help="Fetch a single video instead of searching")
    parser.add_argument("--output-file", help="JSON file collecting the video metadata")
    parser.add_argument("--video-ids-file", help="JSON file collecting the video ids")
    args = parser.parse_args()

    if not (args.search_name or args.disease) and not args.video_id:
        parser.print_usage(sys.stderr)
        logger.error("missing_arguments", required="--search-name, --disease or --video-id")
        sys.exit(1)
    return args


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

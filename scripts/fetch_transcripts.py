#!/usr/bin/env python3
"""
Fetch transcripts for a list of videos.

Results are written to --output-file, or streamed to stdout as one JSON
object per line. With --store they are also saved to the database.

Usage:
    python scripts/fetch_transcripts.py --video-id dQw4w9WgXcQ
    python scripts/fetch_transcripts.py --input-file data/video_ids.json --output-file data/transcripts.json --store
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError
from app.models.transcript import TranscriptRecord
from app.services.pipeline.files import emit_json_lines, read_json_list, write_json
from app.services.pipeline.orchestrator import PipelineOrchestrator
from app.services.youtube.captions import TranscriptFetcher

setup_logging()
logger = get_logger(__name__)


def to_output(record: TranscriptRecord) -> dict[str, str]:
    return {"videoId": record.video_id, "transcript": record.text, "language": record.language}


async def fetch_all(video_ids: list[str], store: bool) -> list[TranscriptRecord]:
    if store:
        async with Database() as db:
            await db.init_schema()
            return await PipelineOrchestrator(db).fetch_transcripts(video_ids)

    fetcher = TranscriptFetcher()
    records = []
    for index, video_id in enumerate(video_ids, start=1):
        records.append(await fetcher.fetch(video_id))
        logger.info("transcript_progress", completed=index, total=len(video_ids))
    return records


async def main(args: argparse.Namespace) -> int:
    if args.video_id:
        video_ids = [args.video_id]
    else:
        try:
            video_ids = read_json_list(args.input_file, missing_ok=True)
        except ValueError as e:
            logger.error("input_file_invalid", path=args.input_file, error=str(e))
            return 1

    if not video_ids:
        logger.warning("no_video_ids", input_file=args.input_file)

    try:
        records = await fetch_all([str(video_id) for video_id in video_ids], args.store)
    except DatabaseError as e:
        logger.error("database_error", error=str(e))
        return 1

    output = [to_output(record) for record in records]
    if args.output_file:
        write_json(args.output_file, output)
        logger.info("transcripts_written", path=args.output_file, count=len(output))
    else:
        emit_json_lines(output)
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch YouTube transcripts")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--video-id", help="Single video id")
    source.add_argument("--input-file", help="JSON array of video ids")
    parser.add_argument("--output-file", help="Write results as a JSON array instead of stdout")
    parser.add_argument("--store", action="store_true", help="Also save transcripts to the database")
    args = parser.parse_args()

    if not args.video_id and not args.input_file:
        parser.print_usage(sys.stderr)
        logger.error("missing_arguments", required="--video-id or --input-file")
        sys.exit(1)
    return args


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

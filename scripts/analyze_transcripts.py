#!/usr/bin/env python3
"""
Run transcripts through the configured LLM and collect structured analyses.

Input is either a single --video-id (transcript fetched live) or an
--input-file holding transcripts ({videoId, transcript, language}) or
scraped pages ({id, title, content}). Results go to --output-file or
stdout, one JSON object per line.

Usage:
    python scripts/analyze_transcripts.py --input-file data/transcripts.json --metadata-file data/videos.json --store
    python scripts/analyze_transcripts.py --video-id dQw4w9WgXcQ
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.exceptions import ConfigurationError
from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError
from app.db.repositories.analysis import AnalysisRepository
from app.db.repositories.video import VideoRepository
from app.models.analysis import AnalysisResult
from app.models.transcript import TRANSCRIPT_UNAVAILABLE
from app.models.video import VideoMetadata
from app.services.analysis.analyzer import TranscriptAnalyzer
from app.services.analysis.normalizer import is_web_source
from app.services.pipeline.files import emit_json_lines, read_json_list, write_json
from app.services.youtube.captions import TranscriptFetcher

setup_logging()
logger = get_logger(__name__)


def load_titles(metadata_file: str | None) -> dict[str, str]:
    """Map video id to title from a metadata file."""
    if not metadata_file:
        return {}
    titles = {}
    for item in read_json_list(metadata_file):
        if not isinstance(item, dict):
            continue
        video_id = item.get("video_id") or item.get("id")
        if video_id and item.get("title"):
            titles[video_id] = item["title"]
    logger.info("metadata_loaded", count=len(titles))
    return titles


def load_inputs(input_file: str, titles: dict[str, str]) -> list[dict[str, Any]]:
    """Accept transcript records and scraped pages."""
    inputs = []
    for item in read_json_list(input_file):
        if isinstance(item, dict) and item.get("videoId") and item.get("transcript"):
            video_id = item["videoId"]
            inputs.append({
                "video_id": video_id,
                "transcript": item["transcript"],
                "title": item.get("title") or titles.get(video_id),
            })
        elif isinstance(item, dict) and item.get("id") and item.get("content"):
            inputs.append({
                "video_id": item["id"],
                "transcript": item["content"],
                "title": item.get("title") or titles.get(item["id"]),
            })
        else:
            logger.error("input_item_invalid", item=str(item)[:200])
    return inputs


async def store_results(db: Database, video_id: str, title: str, results: list[AnalysisResult]) -> None:
    video_repo = VideoRepository(db.connection)
    if not await video_repo.exists(video_id):
        url = video_id if is_web_source(video_id) else f"https://www.youtube.com/watch?v={video_id}"
        await video_repo.upsert(VideoMetadata(video_id=video_id, title=title, url=url))
    # One analysis row per identifier
    await AnalysisRepository(db.connection).upsert(video_id, results[0])


async def main(args: argparse.Namespace) -> int:
    try:
        analyzer = TranscriptAnalyzer.from_settings()
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return 1

    try:
        titles = load_titles(args.metadata_file)
        if args.video_id:
            record = await TranscriptFetcher().fetch(args.video_id)
            if not record.available:
                logger.error("transcript_unavailable", video_id=args.video_id)
                return 1
            inputs = [{"video_id": args.video_id, "transcript": record.text, "title": titles.get(args.video_id)}]
        else:
            inputs = load_inputs(args.input_file, titles)
    except (OSError, ValueError) as e:
        logger.error("input_load_failed", error=str(e))
        return 1

    valid = [item for item in inputs if item["transcript"] != TRANSCRIPT_UNAVAILABLE]
    logger.info("transcripts_loaded", total=len(inputs), valid=len(valid), skipped=len(inputs) - len(valid))
    if not valid:
        logger.error("no_transcripts_to_process")
        return 1

    db = Database() if args.store else None
    output = []
    try:
        if db:
            await db.connect()
            await db.init_schema()

        for item in valid:
            video_id = item["video_id"]
            title = item["title"] or f"Content {video_id}"
            result = await analyzer.analyze(video_id, item["transcript"], title)
            if result is None:
                logger.warning("no_analysis_result", video_id=video_id)
                continue

            results = result if isinstance(result, list) else [result]
            for record in results:
                output.append({"videoId": video_id, **record.model_dump(by_alias=True)})

            if db and results:
                await store_results(db, video_id, title, results)
    except DatabaseError as e:
        logger.error("database_error", error=str(e))
        return 1
    finally:
        if db:
            await db.disconnect()

    if args.output_file:
        write_json(args.output_file, output)
        logger.info("analyses_written", path=args.output_file, count=len(output))
    else:
        emit_json_lines(output)

    logger.info("analysis_pipeline_completed", analysed=len(output))
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze transcripts with the configured LLM")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--video-id", help="Fetch and analyze a single video")
    source.add_argument("--input-file", help="JSON array of transcripts or scraped pages")
    parser.add_argument("--metadata-file", help="Video metadata JSON used to look up titles")
    parser.add_argument("--output-file", help="Write results as a JSON array instead of stdout")
    parser.add_argument("--store", action="store_true", help="Also save analyses to the database")
    args = parser.parse_args()

    if not args.video_id and not args.input_file:
        parser.print_usage(sys.stderr)
        logger.error("missing_arguments", required="--video-id or --input-file")
        sys.exit(1)
    return args


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

#!/usr/bin/env python3
"""
End-to-end pipeline for a saved search: search, transcripts, analysis.

Usage:
    python scripts/run_pipeline.py --search-name mg --search-phrase "myasthenia gravis" --max-results 100
"""

import argparse
import asyncio
import sys
from datetime import datetime, UTC
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.exceptions import ConfigurationError
from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError
from app.models.search_config import DEFAULT_USER_ID
from app.models.video import VideoSearchOptions
from app.services.analysis.analyzer import TranscriptAnalyzer
from app.services.pipeline.orchestrator import PipelineOrchestrator
from app.services.youtube.search import VideoSearchPaginator
from app.services.youtube.time_utils import parse_timestamp

setup_logging()
logger = get_logger(__name__)


async def main(args: argparse.Namespace) -> int:
    start_time = datetime.now(UTC)
    phrases = [p.strip() for p in (args.search_phrase or args.search_name).split(",") if p.strip()]

    # Fail on configuration before touching the network
    try:
        paginator = VideoSearchPaginator()
        analyzer = TranscriptAnalyzer.from_settings()
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return 1

    options = VideoSearchOptions(
        max_results=args.max_results,
        start_date=parse_timestamp(args.start_date),
        end_date=parse_timestamp(args.end_date),
        years_back=args.years_back,
    )

    try:
        async with Database() as db:
            await db.init_schema()
            orchestrator = PipelineOrchestrator(db, paginator=paginator, analyzer=analyzer)
            summary = await orchestrator.run(args.search_name, phrases, options, user_id=args.user_id)
    except DatabaseError as e:
        logger.error("database_error", error=str(e))
        return 1

    duration = (datetime.now(UTC) - start_time).total_seconds()
    logger.info("pipeline_run_finished", duration_seconds=round(duration, 1), **summary)
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run search, transcript and analysis stages for a saved search",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--search-name", required=True, help="Label for the saved search")
    parser.add_argument("--search-phrase", help="Comma-separated phrases (default: the search name)")
    parser.add_argument("--max-results", type=int, help="Stop after this many videos per phrase")
    parser.add_argument("--start-date", help="Earliest publish date (YYYY-MM-DD)")
    parser.add_argument("--end-date", help="Latest publish date (YYYY-MM-DD)")
    parser.add_argument("--years-back", type=int, help="Lookback when no start date is given")
    parser.add_argument("--user-id", default=DEFAULT_USER_ID, help="Owner of the saved search")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

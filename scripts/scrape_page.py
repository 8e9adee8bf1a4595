#!/usr/bin/env python3
"""
Scrape a web page into the analyzer's input format.

Writes [{"id": <url>, "title": ..., "content": ...}] to --output-file, or one
JSON line to stdout. With --analyze the page is also stored and analysed.

Usage:
    python scripts/scrape_page.py --url https://example.org/story --output-file data/page.json
    python scripts/scrape_page.py --url https://example.org/story --analyze --search-name mg
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
from app.services.pipeline.files import emit_json_lines, write_json
from app.services.pipeline.orchestrator import PipelineOrchestrator
from app.services.web.scraper import scrape_page

setup_logging()
logger = get_logger(__name__)


async def analyze_page(url: str, search_name: str | None) -> int:
    try:
        async with Database() as db:
            await db.init_schema()
            results = await PipelineOrchestrator(db).ingest_page(url, search_name=search_name)
    except (ConfigurationError, DatabaseError) as e:
        logger.error("page_ingest_failed", url=url, error=str(e))
        return 1

    if results is None:
        return 1
    emit_json_lines([{"videoId": url, **result.model_dump(by_alias=True)} for result in results])
    return 0


async def main(args: argparse.Namespace) -> int:
    if args.analyze:
        return await analyze_page(args.url, args.search_name)

    page = await scrape_page(args.url)
    if page is None:
        logger.error("no_data_scraped", url=args.url)
        return 1

    output = [{"id": page.url, "title": page.title, "content": page.content}]
    if args.output_file:
        write_json(args.output_file, output)
        logger.info("scraped_page_written", path=args.output_file)
    else:
        emit_json_lines(output)
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape a web page")
    parser.add_argument("--url", required=True, help="Page URL")
    parser.add_argument("--output-file", help="Write the page as a JSON array instead of stdout")
    parser.add_argument("--analyze", action="store_true", help="Store and analyse the page")
    parser.add_argument("--search-name", help="Label for the stored page (with --analyze)")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))

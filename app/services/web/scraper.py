"""Web page scraping for article-style sources."""

import re
from dataclasses import dataclass

import httpx
import structlog
from bs4 import BeautifulSoup

from app.core.config import settings

logger = structlog.get_logger(__name__)

STRIPPED_TAGS = ["script", "style", "nav", "header", "footer", "aside"]


@dataclass
class ScrapedPage:
    """Readable text extracted from a web page."""

    url: str
    title: str
    content: str


def extract_page(url: str, html: str) -> ScrapedPage | None:
    """Pull the title and body text out of an HTML document."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = ""
    if soup.title:
        title = soup.title.get_text().strip()
    if not title:
        heading = soup.find("h1")
        title = heading.get_text().strip() if heading else ""
    title = title or "Untitled"

    for tag in soup.find_all(STRIPPED_TAGS):
        tag.decompose()

    body = soup.body or soup
    content = re.sub(r"\s+", " ", body.get_text(" ")).strip()
    if not content:
        logger.warning("page_empty", url=url)
        return None

    return ScrapedPage(url=url, title=title, content=content)


async def scrape_page(
    url: str,
    client: httpx.AsyncClient | None = None,
) -> ScrapedPage | None:
    """Fetch and extract a page; None on transport errors or empty content."""
    headers = {"User-Agent": settings.scrape_user_agent}
    logger.info("page_scrape_started", url=url)

    try:
        if client is None:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=settings.scrape_timeout_seconds,
            ) as owned_client:
                response = await owned_client.get(url, headers=headers)
        else:
            response = await client.get(url, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("page_scrape_failed", url=url, error=str(e))
        return None

    page = extract_page(url, response.text)
    if page:
        logger.info("page_scraped", url=url, title=page.title, content_length=len(page.content))
    return page

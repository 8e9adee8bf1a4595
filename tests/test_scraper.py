"""Tests for web page extraction and fetching."""

import httpx
import pytest

from app.services.web.scraper import extract_page, scrape_page

ARTICLE = """
<html>
  <head><title>  Living with MG  </title><style>body { color: red; }</style></head>
  <body>
    <header>Site header</header>
    <nav>Home | About</nav>
    <h1>Anna's story</h1>
    <p>Anna noticed   drooping eyelids.</p>
    <script>track();</script>
    <p>Diagnosis took two years.</p>
    <aside>Related links</aside>
    <footer>Copyright</footer>
  </body>
</html>
"""


def test_extract_page_keeps_readable_text() -> None:
    page = extract_page("https://example.org/anna", ARTICLE)

    assert page.title == "Living with MG"
    assert page.content == "Anna's story Anna noticed drooping eyelids. Diagnosis took two years."


def test_extract_page_title_falls_back_to_heading() -> None:
    page = extract_page("https://example.org/a", "<html><body><h1>Heading</h1><p>Text</p></body></html>")
    assert page.title == "Heading"

    untitled = extract_page("https://example.org/b", "<html><body><p>Text</p></body></html>")
    assert untitled.title == "Untitled"


def test_extract_page_without_text_is_none() -> None:
    assert extract_page("https://example.org/empty", "<html><body><script>x()</script></body></html>") is None


@pytest.mark.asyncio
async def test_scrape_page_sends_user_agent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=ARTICLE)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        page = await scrape_page("https://example.org/anna", client=client)

    assert page.title == "Living with MG"
    assert page.url == "https://example.org/anna"
    assert "Mozilla" in seen[0].headers["User-Agent"]


@pytest.mark.asyncio
async def test_scrape_page_http_error_is_none() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="missing"))

    async with httpx.AsyncClient(transport=transport) as client:
        assert await scrape_page("https://example.org/missing", client=client) is None

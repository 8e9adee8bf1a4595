"""Tests for prompt templates and the transcript analyzer."""

from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from app.core.exceptions import PromptTemplateError
from app.models.analysis import VIDEO_TYPE_NEWS_BULLETIN, VIDEO_TYPE_PATIENT_STORY, AnalysisResult
from app.services.analysis.analyzer import TranscriptAnalyzer
from app.services.analysis.backends import GeminiBackend, LLMBackend
from app.services.analysis.exceptions import LLMBackendError
from app.services.analysis.prompts import fill_prompt, load_prompt_template

TEMPLATE = "Title: {title}\nId: {videoId}\n{transcript}\nAgain: {title}"


class FakeBackend(LLMBackend):
    name = "fake"

    def __init__(self, reply: str = "", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def write_library(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "prompts.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_prompt_template(tmp_path: Path) -> None:
    path = write_library(tmp_path, "disease_space:\n  prompt: |\n    Analyze {transcript}\n")
    assert load_prompt_template(path, "disease_space") == "Analyze {transcript}\n"


def test_bundled_prompt_library_loads() -> None:
    template = load_prompt_template(Path(__file__).parent.parent / "prompt_library.yaml", "disease_space")
    assert "{transcript}" in template


@pytest.mark.parametrize(
    "content",
    [
        "other:\n  prompt: hi\n",
        "disease_space:\n  description: no prompt\n",
        "disease_space:\n  prompt: '   '\n",
        "- just\n- a list\n",
        "disease_space: [unclosed\n",
    ],
)
def test_load_prompt_template_errors(tmp_path: Path, content: str) -> None:
    with pytest.raises(PromptTemplateError):
        load_prompt_template(write_library(tmp_path, content), "disease_space")


def test_missing_prompt_library(tmp_path: Path) -> None:
    with pytest.raises(PromptTemplateError):
        load_prompt_template(tmp_path / "absent.yaml", "disease_space")


def test_fill_prompt_replaces_every_placeholder_once() -> None:
    prompt = fill_prompt(TEMPLATE, title="MG Journey", transcript="says {title} aloud", video_id="vid1")

    assert prompt == "Title: MG Journey\nId: vid1\nsays {title} aloud\nAgain: MG Journey"


@pytest.mark.asyncio
async def test_analyze_fills_prompt_and_normalizes_reply() -> None:
    backend = FakeBackend('```json\n{"video_type": "news bulletin", "headline": "Trial results",}\n```')
    analyzer = TranscriptAnalyzer(backend, TEMPLATE)

    result = await analyzer.analyze("vid1", "transcript text", "MG News")

    assert isinstance(result, AnalysisResult)
    assert result.video_type == VIDEO_TYPE_NEWS_BULLETIN
    assert result.headline == "Trial results"
    assert backend.prompts == ["Title: MG News\nId: vid1\ntranscript text\nAgain: MG News"]


@pytest.mark.asyncio
async def test_analyze_web_page_returns_list() -> None:
    analyzer = TranscriptAnalyzer(FakeBackend('{"name": "Anna"}'), TEMPLATE)

    result = await analyzer.analyze("https://example.org/story", "page text", "Anna's story")

    assert isinstance(result, list)
    assert result[0].video_type == VIDEO_TYPE_PATIENT_STORY


@pytest.mark.asyncio
async def test_analyze_skips_empty_transcript() -> None:
    backend = FakeBackend("{}")
    analyzer = TranscriptAnalyzer(backend, TEMPLATE)

    assert await analyzer.analyze("vid1", "   ", "Title") is None
    assert backend.prompts == []


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "I cannot help with that."])
async def test_analyze_unusable_reply_is_none(reply: str) -> None:
    analyzer = TranscriptAnalyzer(FakeBackend(reply), TEMPLATE)
    assert await analyzer.analyze("vid1", "text", "Title") is None


@pytest.mark.asyncio
async def test_analyze_backend_error_is_none() -> None:
    analyzer = TranscriptAnalyzer(FakeBackend(error=LLMBackendError("timeout")), TEMPLATE)
    assert await analyzer.analyze("vid1", "text", "Title") is None


@pytest.mark.asyncio
async def test_analyze_unreachable_gemini_is_none() -> None:
    def generate_content(**kwargs):
        raise httpx.ConnectError("[Errno 111] Connection refused")

    client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
    analyzer = TranscriptAnalyzer(GeminiBackend(api_key="key", model="gemini-2.0-flash", client=client), "{transcript}")

    assert await analyzer.analyze("vid1", "some transcript", "title") is None

"""Tests for caption parsing and language fallback."""

import io

import pytest
import yt_dlp

from app.models.transcript import LANGUAGE_AUTO, LANGUAGE_NONE, TRANSCRIPT_UNAVAILABLE
from app.services.youtube.captions import TranscriptFetcher, _parse_vtt_to_text

VTT_EN = """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.500
<c>Hello</c> and welcome

00:00:02.500 --> 00:00:05.000
[Music]
to the channel

00:00:05.000 --> 00:00:07.000
to the channel
"""

VTT_DE = """WEBVTT

00:00:00.000 --> 00:00:01.000
Guten Tag
"""


class FakeYDL:
    def __init__(self, info=None, bodies=None, error=None):
        self.info = info
        self.bodies = bodies or {}
        self.error = error
        self.opened: list[str] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def extract_info(self, url, download=False):
        if self.error is not None:
            raise self.error
        return self.info

    def urlopen(self, url):
        self.opened.append(url)
        body = self.bodies.get(url)
        if body is None:
            raise OSError("HTTP Error 404")
        return io.BytesIO(body.encode("utf-8"))


def track(url: str, ext: str = "vtt") -> dict:
    return {"ext": ext, "url": url}


def fetcher_for(ydl: FakeYDL, languages: list[str]) -> TranscriptFetcher:
    return TranscriptFetcher(languages=languages, ydl_factory=lambda: ydl)


def test_parse_vtt_strips_tags_and_duplicates() -> None:
    assert _parse_vtt_to_text(VTT_EN) == "Hello and welcome to the channel"


def test_parse_vtt_joins_multi_line_cues() -> None:
    vtt = "WEBVTT\n\n00:00:00.000 --> 00:00:02.000\nfirst line\nsecond   line\n"
    assert _parse_vtt_to_text(vtt) == "first line second line"


def test_parse_vtt_empty_content() -> None:
    assert _parse_vtt_to_text("WEBVTT\n\n") == ""


def test_first_listed_language_wins() -> None:
    ydl = FakeYDL(
        info={
            "subtitles": {"de": [track("https://captions/de")]},
            "automatic_captions": {"en": [track("https://captions/en")]},
        },
        bodies={"https://captions/en": VTT_EN, "https://captions/de": VTT_DE},
    )

    record = fetcher_for(ydl, ["en", "de"]).fetch_sync("vid1")

    assert record.video_id == "vid1"
    assert record.language == "en"
    assert record.text == "Hello and welcome to the channel"
    assert record.available


def test_manual_track_preferred_over_automatic() -> None:
    ydl = FakeYDL(
        info={
            "subtitles": {"en": [track("https://captions/manual")]},
            "automatic_captions": {"en": [track("https://captions/auto")]},
        },
        bodies={"https://captions/manual": VTT_DE, "https://captions/auto": VTT_EN},
    )

    record = fetcher_for(ydl, ["en"]).fetch_sync("vid1")

    assert record.text == "Guten Tag"
    assert ydl.opened == ["https://captions/manual"]


def test_failed_download_moves_to_next_language() -> None:
    ydl = FakeYDL(
        info={
            "subtitles": {
                "en": [track("https://captions/broken")],
                "de": [track("https://captions/de")],
            },
        },
        bodies={"https://captions/de": VTT_DE},
    )

    record = fetcher_for(ydl, ["en", "de"]).fetch_sync("vid1")

    assert record.language == "de"
    assert record.text == "Guten Tag"


def test_translated_and_non_vtt_tracks_are_skipped() -> None:
    ydl = FakeYDL(
        info={
            "automatic_captions": {
                "en": [
                    track("https://captions/en.srv3", ext="srv3"),
                    track("https://captions/en?tlang=en"),
                ],
            },
        },
        bodies={"https://captions/en?tlang=en": VTT_EN},
    )

    record = fetcher_for(ydl, ["en"]).fetch_sync("vid1")

    assert record.text == TRANSCRIPT_UNAVAILABLE
    assert ydl.opened == []


def test_falls_back_to_any_language_as_auto() -> None:
    ydl = FakeYDL(
        info={"subtitles": {"pt": [track("https://captions/pt")]}},
        bodies={"https://captions/pt": VTT_DE},
    )

    record = fetcher_for(ydl, ["en", "fr"]).fetch_sync("vid1")

    assert record.language == LANGUAGE_AUTO
    assert record.text == "Guten Tag"


def test_no_tracks_gives_unavailable_record() -> None:
    ydl = FakeYDL(info={"subtitles": {}, "automatic_captions": {}})

    record = fetcher_for(ydl, ["en"]).fetch_sync("vid1")

    assert record.text == TRANSCRIPT_UNAVAILABLE
    assert record.language == LANGUAGE_NONE
    assert not record.available


def test_listing_error_gives_unavailable_record() -> None:
    ydl = FakeYDL(error=yt_dlp.utils.DownloadError("Video unavailable"))

    record = fetcher_for(ydl, ["en"]).fetch_sync("vid1")

    assert record.text == TRANSCRIPT_UNAVAILABLE
    assert record.language == LANGUAGE_NONE


@pytest.mark.asyncio
async def test_fetch_runs_in_executor() -> None:
    ydl = FakeYDL(
        info={"subtitles": {"en": [track("https://captions/en")]}},
        bodies={"https://captions/en": VTT_EN},
    )

    record = await fetcher_for(ydl, ["en"]).fetch("vid1")

    assert record.language == "en"

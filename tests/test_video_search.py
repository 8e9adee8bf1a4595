"""Tests for the YouTube client, key rotation and the search paginator."""

import json
from datetime import datetime, timezone
from typing import Any

import httplib2
import pytest
from googleapiclient.errors import HttpError

from app.core.exceptions import MissingApiKeysError
from app.models.video import VideoMetadata, VideoSearchOptions
from app.services.youtube.client import ApiKeyPool, YouTubeClient, is_quota_error
from app.services.youtube.exceptions import QuotaExhaustedError
from app.services.youtube.search import (
    VideoSearchPaginator,
    get_video_details,
    unique_by_id,
    video_from_api_item,
)

WINDOW = VideoSearchOptions(
    start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
    end_date=datetime(2024, 1, 10, tzinfo=timezone.utc),
)


def http_error(status: int, reason: str) -> HttpError:
    body = {"error": {"code": status, "errors": [{"reason": reason}]}}
    return HttpError(httplib2.Response({"status": status}), json.dumps(body).encode())


def video_item(video_id: str, duration: str = "PT1M30S", views: str | None = "10") -> dict[str, Any]:
    statistics = {"viewCount": views} if views is not None else {}
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "description": "desc",
            "publishedAt": "2024-01-05T12:00:00Z",
            "channelTitle": "Channel",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}},
        },
        "contentDetails": {"duration": duration},
        "statistics": statistics,
    }


def search_hits(video_ids: list[str], next_token: str | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {"items": [{"id": {"kind": "youtube#video", "videoId": vid}} for vid in video_ids]}
    if next_token:
        response["nextPageToken"] = next_token
    return response


class FakeRequest:
    def __init__(self, service: "FakeService", method: str, params: dict[str, Any]):
        self.service = service
        self.method = method
        self.params = params

    def execute(self, num_retries: int = 0) -> dict[str, Any]:
        self.service.calls.append((self.service.api_key, self.method, self.params))
        return self.service.handler(self.service.api_key, self.method, self.params)


class FakeResource:
    def __init__(self, service: "FakeService", method: str):
        self.service = service
        self.method = method

    def list(self, **params: Any) -> FakeRequest:
        return FakeRequest(self.service, self.method, params)


class FakeService:
    def __init__(self, api_key: str, handler, calls: list):
        self.api_key = api_key
        self.handler = handler
        self.calls = calls

    def search(self) -> FakeResource:
        return FakeResource(self, "search")

    def videos(self) -> FakeResource:
        return FakeResource(self, "videos")


def make_client(handler, keys: list[str] | None = None) -> tuple[YouTubeClient, list]:
    calls: list = []
    client = YouTubeClient(
        api_keys=keys or ["key-1"],
        service_factory=lambda api_key: FakeService(api_key, handler, calls),
    )
    return client, calls


def details_for(params: dict[str, Any]) -> dict[str, Any]:
    return {"items": [video_item(vid) for vid in params["id"].split(",")]}


def test_api_key_pool_requires_keys() -> None:
    with pytest.raises(MissingApiKeysError):
        ApiKeyPool([])
    with pytest.raises(MissingApiKeysError):
        ApiKeyPool(["", "  "])


def test_api_key_pool_rotates_in_order() -> None:
    pool = ApiKeyPool(["a", "b"])
    assert pool.current == "a"
    assert pool.rotate() is True
    assert pool.current == "b"
    assert pool.rotate() is False
    assert pool.exhausted is True


def test_is_quota_error() -> None:
    assert is_quota_error(http_error(403, "quotaExceeded"))
    assert is_quota_error(http_error(403, "dailyLimitExceeded"))
    assert not is_quota_error(http_error(403, "forbidden"))
    assert not is_quota_error(http_error(500, "quotaExceeded"))


def test_video_from_api_item() -> None:
    video = video_from_api_item(video_item("abc", duration="PT1H2M3S", views=None), search_name="mg")

    assert video.video_id == "abc"
    assert video.duration_seconds == 3723
    assert video.view_count == 0
    assert video.url == "https://www.youtube.com/watch?v=abc"
    assert video.thumbnail_url == "https://i.ytimg.com/vi/abc/hq.jpg"
    assert video.channel_name == "Channel"
    assert video.published_at == datetime(2024, 1, 5, 12, tzinfo=timezone.utc)
    assert video.search_name == "mg"


def test_video_from_api_item_without_id() -> None:
    assert video_from_api_item({"snippet": {}}) is None


def test_unique_by_id_keeps_first_occurrence() -> None:
    items = [{"id": "a", "n": 1}, {"id": "b", "n": 2}, {"id": "a", "n": 3}]
    assert unique_by_id(items) == [{"id": "a", "n": 1}, {"id": "b", "n": 2}]


@pytest.mark.asyncio
async def test_search_delivers_each_page_in_order() -> None:
    def handler(api_key, method, params):
        if method == "search":
            if params.get("pageToken") == "page-2":
                return search_hits(["c"])
            return search_hits(["a", "b", "a"], next_token="page-2")
        return details_for(params)

    client, calls = make_client(handler)
    paginator = VideoSearchPaginator(client=client)
    batches: list[list[VideoMetadata]] = []

    async def on_batch(batch: list[VideoMetadata]) -> None:
        batches.append(batch)

    total = await paginator.search_videos("myasthenia", WINDOW, on_batch)

    assert total == 3
    assert [[video.video_id for video in batch] for batch in batches] == [["a", "b"], ["c"]]

    search_calls = [params for _, method, params in calls if method == "search"]
    assert search_calls[0]["q"] == "myasthenia"
    assert search_calls[0]["publishedAfter"] == "2024-01-01T00:00:00Z"
    assert search_calls[0]["publishedBefore"] == "2024-01-10T00:00:00Z"
    assert search_calls[0]["maxResults"] == 50
    assert "pageToken" not in search_calls[0]
    assert search_calls[1]["pageToken"] == "page-2"


@pytest.mark.asyncio
async def test_search_walks_every_chunk() -> None:
    def handler(api_key, method, params):
        if method == "search":
            return search_hits([params["publishedAfter"][:10]])
        return details_for(params)

    client, _ = make_client(handler)
    options = VideoSearchOptions(
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
    )

    batches = [batch async for batch in VideoSearchPaginator(client=client).iter_batches("q", options)]

    assert [batch[0].video_id for batch in batches] == ["2024-01-01", "2024-01-15", "2024-01-29"]


@pytest.mark.asyncio
async def test_search_stops_at_result_cap() -> None:
    def handler(api_key, method, params):
        if method == "search":
            count = params["maxResults"]
            offset = int(params.get("pageToken") or 0)
            ids = [f"v{offset + i}" for i in range(count)]
            return search_hits(ids, next_token=str(offset + count))
        return details_for(params)

    client, calls = make_client(handler)
    options = WINDOW.model_copy(update={"max_results": 3})

    total = await VideoSearchPaginator(client=client, page_size=2).search_videos("q", options)

    assert total == 3
    search_calls = [params for _, method, params in calls if method == "search"]
    assert [params["maxResults"] for params in search_calls] == [2, 1]


@pytest.mark.asyncio
async def test_quota_error_retries_same_request_with_next_key() -> None:
    def handler(api_key, method, params):
        if api_key == "key-1":
            raise http_error(403, "quotaExceeded")
        if method == "search":
            return search_hits(["a"])
        return details_for(params)

    client, calls = make_client(handler, keys=["key-1", "key-2"])

    total = await VideoSearchPaginator(client=client).search_videos("q", WINDOW)

    assert total == 1
    assert calls[0][0] == "key-1"
    assert calls[1][0] == "key-2"
    assert calls[0][1:] == calls[1][1:]


@pytest.mark.asyncio
async def test_exhausted_pool_returns_partial_results() -> None:
    def handler(api_key, method, params):
        if method == "search" and params.get("pageToken") == "page-2":
            raise http_error(403, "quotaExceeded")
        if method == "search":
            return search_hits(["a", "b"], next_token="page-2")
        return details_for(params)

    client, calls = make_client(handler, keys=["key-1", "key-2"])
    delivered: list[str] = []

    async def on_batch(batch: list[VideoMetadata]) -> None:
        delivered.extend(video.video_id for video in batch)

    total = await VideoSearchPaginator(client=client).search_videos("q", WINDOW, on_batch)

    assert total == 2
    assert delivered == ["a", "b"]
    assert client.pool.exhausted is True


@pytest.mark.asyncio
async def test_non_quota_error_propagates() -> None:
    def handler(api_key, method, params):
        raise http_error(500, "backendError")

    client, _ = make_client(handler, keys=["key-1", "key-2"])

    with pytest.raises(HttpError):
        await VideoSearchPaginator(client=client).search_videos("q", WINDOW)


def test_client_raises_when_pool_exhausted() -> None:
    def handler(api_key, method, params):
        raise http_error(403, "quotaExceeded")

    client, calls = make_client(handler, keys=["key-1", "key-2"])

    with pytest.raises(QuotaExhaustedError):
        client.execute(lambda service: service.search().list(q="q"))
    assert [api_key for api_key, _, _ in calls] == ["key-1", "key-2"]

    # Later requests fail without another API call
    with pytest.raises(QuotaExhaustedError):
        client.execute(lambda service: service.search().list(q="q"))
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_get_video_details() -> None:
    def handler(api_key, method, params):
        if params["id"] == "missing":
            return {"items": []}
        return details_for(params)

    client, _ = make_client(handler)

    video = await get_video_details("abc", client=client)
    assert video is not None
    assert video.video_id == "abc"
    assert await get_video_details("missing", client=client) is None


@pytest.mark.asyncio
async def test_get_video_details_failures_return_none() -> None:
    def quota(api_key, method, params):
        raise http_error(403, "quotaExceeded")

    def broken(api_key, method, params):
        raise http_error(404, "notFound")

    quota_client, _ = make_client(quota)
    broken_client, _ = make_client(broken)

    assert await get_video_details("abc", client=quota_client) is None
    assert await get_video_details("abc", client=broken_client) is None

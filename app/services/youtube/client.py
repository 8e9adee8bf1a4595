"""YouTube Data API client with API key rotation on quota exhaustion."""

import asyncio
import json
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.core.config import settings
from app.core.exceptions import MissingApiKeysError
from app.services.youtube.exceptions import QuotaExhaustedError

logger = structlog.get_logger(__name__)

# Thread pool for running the Google API client (which is synchronous)
_executor = ThreadPoolExecutor(max_workers=2)

QUOTA_REASONS = frozenset({"quotaExceeded", "dailyLimitExceeded"})


def _build_service(api_key: str) -> Any:
    return build("youtube", "v3", developerKey=api_key, cache_discovery=False)


def _error_reasons(error: HttpError) -> set[str]:
    content = error.content
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        payload = json.loads(content or "{}")
    except ValueError:
        return set()
    if not isinstance(payload, dict):
        return set()

    error_body = payload.get("error")
    if not isinstance(error_body, dict):
        return set()
    return {
        entry.get("reason")
        for entry in error_body.get("errors") or []
        if isinstance(entry, dict) and entry.get("reason")
    }


def is_quota_error(error: HttpError) -> bool:
    """True when the API reports that the current key ran out of quota."""
    status = getattr(error.resp, "status", None)
    if str(status) != "403":
        return False
    return bool(_error_reasons(error) & QUOTA_REASONS)


class ApiKeyPool:
    """Fixed, ordered pool of API keys consumed front to back."""

    def __init__(self, api_keys: Sequence[str]):
        keys = [key.strip() for key in api_keys if key and key.strip()]
        if not keys:
            raise MissingApiKeysError("No YouTube API keys configured (YOUTUBE_API_KEYS)")
        self._keys = keys
        self._index = 0
        self.exhausted = False

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> str:
        return self._keys[self._index]

    def rotate(self) -> bool:
        """Advance to the next key; False (and exhausted) when none is left."""
        if self._index + 1 < len(self._keys):
            self._index += 1
            logger.info("youtube_api_key_rotated", key_number=self._index + 1, pool_size=len(self._keys))
            return True
        self.exhausted = True
        logger.error("youtube_api_keys_exhausted", pool_size=len(self._keys))
        return False


class YouTubeClient:
    """Executes Data API requests, retrying the same request on the next key when quota runs out."""

    def __init__(
        self,
        api_keys: Sequence[str] | None = None,
        service_factory: Callable[[str], Any] | None = None,
    ):
        self.pool = ApiKeyPool(settings.youtube_api_key_list if api_keys is None else api_keys)
        self._service_factory = service_factory or _build_service
        self._service = None

    @property
    def service(self) -> Any:
        """Create or reuse the service client bound to the current key."""
        if self._service is None:
            self._service = self._service_factory(self.pool.current)
        return self._service

    def execute(self, build_request: Callable[[Any], Any], label: str = "request") -> dict[str, Any]:
        """Build and execute a request, rotating keys on quota errors.

        Raises:
            QuotaExhaustedError: every key in the pool has hit its quota
            HttpError: any other API failure
        """
        if self.pool.exhausted:
            raise QuotaExhaustedError(f"All {len(self.pool)} API keys exhausted")

        while True:
            request = build_request(self.service)
            try:
                return request.execute(num_retries=0)
            except HttpError as e:
                if not is_quota_error(e):
                    raise
                logger.warning(
                    "youtube_quota_exceeded",
                    label=label,
                    key_number=self.pool.index + 1,
                )
                if not self.pool.rotate():
                    raise QuotaExhaustedError(f"All {len(self.pool)} API keys exhausted") from e
                self._service = None

    async def execute_async(
        self,
        build_request: Callable[[Any], Any],
        label: str = "request",
    ) -> dict[str, Any]:
        """Run `execute` on a worker thread."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, self.execute, build_request, label)

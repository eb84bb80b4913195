# participium_bot/infra/media_fetchers/telegram_fetcher.py
"""
Telegram Bot API media fetcher.

Two-step download:
1. getFile(file_id) → file_path
2. GET https://api.telegram.org/file/bot{token}/{file_path}

Telegram refuses downloads above 20 MB; the photo size limit is enforced
afterwards by the image processor.
"""
from __future__ import annotations

import asyncio

import aiohttp

from participium_bot.core.engine.domain import MediaItem
from participium_bot.core.engine.errors import MediaFetchError
from participium_bot.infra.http_client import get_fetcher_session
from participium_bot.infra.media_fetchers.base import FetchResult
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramMediaFetcher:
    """Fetches photos by Telegram ``file_id`` with bounded retries."""

    def __init__(self, bot_token: str, *, max_retries: int = 3, backoff_seconds: float = 1.0):
        self._bot_token = bot_token
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    def _api_url(self, method: str) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self._bot_token}/{method}"

    def _file_url(self, file_path: str) -> str:
        return f"{TELEGRAM_API_BASE}/file/bot{self._bot_token}/{file_path}"

    async def _get_file_path(self, file_id: str) -> str:
        session = get_fetcher_session()

        async with session.post(
            self._api_url("getFile"),
            json={"file_id": file_id},
            timeout=aiohttp.ClientTimeout(total=10, connect=5),
        ) as resp:
            if resp.status != 200:
                raise MediaFetchError(
                    f"Telegram getFile returned {resp.status} for file_id {file_id[:20]}",
                    retryable=resp.status >= 500 or resp.status == 429,
                )

            data = await resp.json()
            if not data.get("ok"):
                raise MediaFetchError(
                    f"Telegram getFile failed: {data.get('description', 'unknown error')}",
                    retryable=False,
                )

            file_path = (data.get("result") or {}).get("file_path")
            if not file_path:
                raise MediaFetchError(
                    f"Telegram getFile response missing 'file_path' for file_id {file_id[:20]}",
                    retryable=False,
                )
            return file_path

    async def _download_binary(self, file_path: str) -> tuple[bytes, str | None]:
        session = get_fetcher_session()

        async with session.get(self._file_url(file_path)) as resp:
            if resp.status != 200:
                raise MediaFetchError(
                    f"Telegram file download returned {resp.status}",
                    retryable=resp.status >= 500 or resp.status == 429,
                )

            data = await resp.read()
            if not data:
                raise MediaFetchError("Telegram file download returned empty body")

            cl_header = resp.headers.get("Content-Length")
            if cl_header and len(data) < int(cl_header):
                raise MediaFetchError(f"Incomplete download: got {len(data)} of {cl_header} bytes")

            return data, resp.headers.get("Content-Type")

    async def fetch(self, media_item: MediaItem) -> FetchResult:
        file_id = media_item.file_id
        if not file_id:
            raise MediaFetchError("MediaItem has no file_id", retryable=False)

        logger.info(f"Fetching media via Telegram Bot API: file_id={file_id[:20]}")
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                file_path = await self._get_file_path(file_id)
                data, content_type = await self._download_binary(file_path)
                logger.info(
                    f"Telegram media fetched: {len(data)} bytes, content_type={content_type}"
                )
                return FetchResult(
                    data=data,
                    content_type=content_type or media_item.content_type,
                    source="telegram_api",
                )

            except MediaFetchError as e:
                if not e.retryable or attempt == self.max_retries - 1:
                    raise
                last_error = e
            except (aiohttp.ClientError, TimeoutError) as e:
                last_error = e
                if attempt == self.max_retries - 1:
                    raise MediaFetchError(
                        f"Telegram media fetch failed after {self.max_retries} attempts: {e}"
                    ) from e

            wait = (attempt + 1) * self.backoff_seconds
            logger.warning(
                f"Telegram media fetch failed (attempt {attempt + 1}/{self.max_retries}), "
                f"retrying in {wait}s: {last_error}"
            )
            await asyncio.sleep(wait)

        raise MediaFetchError(
            f"Telegram media fetch failed after {self.max_retries} attempts: {last_error}"
        )

# participium_bot/infra/media_fetchers/base.py
"""
Media fetcher abstraction layer.

Defines the protocol and result type for provider-specific fetchers.
Failures are reported as ``MediaFetchError`` (domain error) so the photo
step can tell "try again" apart from "this file is bad".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from participium_bot.core.engine.domain import MediaItem


@dataclass
class FetchResult:
    """Result of a media fetch operation."""

    data: bytes
    content_type: Optional[str] = None
    source: str = ""  # e.g. "telegram_api"


class MediaFetcher(Protocol):
    async def fetch(self, media_item: MediaItem) -> FetchResult:
        """
        Download media and return raw bytes.

        Raises:
            MediaFetchError: If download fails after all internal retries.
        """
        ...

# participium_bot/infra/media_fetchers/__init__.py
"""
Provider-specific media fetchers.

Each fetcher only downloads raw bytes; validation and encoding stay in
``participium_bot.infra.image_processor``.
"""
from participium_bot.infra.media_fetchers.base import FetchResult, MediaFetcher  # noqa: F401
from participium_bot.infra.media_fetchers.telegram_fetcher import TelegramMediaFetcher  # noqa: F401

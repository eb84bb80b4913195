# participium_bot/infra/http_client.py
"""
Shared HTTP client sessions for the application.

Provides named, lazy-initialized aiohttp.ClientSession singletons
to avoid per-request session creation overhead and TCP connection churn.

Session profiles
~~~~~~~~~~~~~~~~
- **sender**   – Telegram Bot API calls (total=25 s, connect=5 s, pool limit=20)
- **fetcher**  – photo downloads       (total=60 s, connect=15 s, pool limit=10)
- **geocoder** – Nominatim lookups     (total=10 s, connect=5 s, pool limit=4)
- **backend**  – Participium REST API  (total=30 s, connect=5 s, pool limit=10,
  carries the service token as a default ``Authorization`` header)

Shutdown
~~~~~~~~
Call ``close_all_sessions()`` once during application shutdown.
"""
from __future__ import annotations

import aiohttp

from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

_sessions: dict[str, aiohttp.ClientSession] = {}


def _get_or_create(
    name: str,
    timeout: aiohttp.ClientTimeout,
    limit: int = 10,
    headers: dict[str, str] | None = None,
) -> aiohttp.ClientSession:
    """Return an existing session or create a new one."""
    session = _sessions.get(name)
    if session is None or session.closed:
        session = aiohttp.ClientSession(
            timeout=timeout,
            headers=headers,
            connector=aiohttp.TCPConnector(
                keepalive_timeout=30,
                limit=limit,
                enable_cleanup_closed=True,
            ),
        )
        _sessions[name] = session
        logger.debug("HTTP session '%s' created (limit=%d)", name, limit)
    return session


def get_sender_session() -> aiohttp.ClientSession:
    """Session for Telegram Bot API calls."""
    return _get_or_create(
        "sender",
        aiohttp.ClientTimeout(total=25, connect=5),
        limit=20,
    )


def get_fetcher_session() -> aiohttp.ClientSession:
    """Session for photo downloads."""
    return _get_or_create(
        "fetcher",
        aiohttp.ClientTimeout(total=60, connect=15),
        limit=10,
    )


def get_geocoder_session() -> aiohttp.ClientSession:
    """Session for Nominatim.  Small pool: the public instance allows ~1 req/s."""
    return _get_or_create(
        "geocoder",
        aiohttp.ClientTimeout(total=10, connect=5),
        limit=4,
    )


def get_backend_session(token: str | None = None) -> aiohttp.ClientSession:
    """Session for the Participium backend.

    The token is bound when the session is first created; later calls
    reuse that session regardless of the argument.
    """
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return _get_or_create(
        "backend",
        aiohttp.ClientTimeout(total=30, connect=5),
        limit=10,
        headers=headers,
    )


async def close_all_sessions() -> None:
    """Gracefully close every managed session.  Call during app shutdown."""
    for name in list(_sessions):
        session = _sessions.pop(name, None)
        if session is not None and not session.closed:
            await session.close()
            logger.debug("HTTP session '%s' closed", name)

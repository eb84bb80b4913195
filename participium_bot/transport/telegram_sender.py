# participium_bot/transport/telegram_sender.py
"""
Telegram Bot API outbound sender.

Uses the Bot API to:
- Send text messages with reply / inline keyboards
- Acknowledge inline button presses (answerCallbackQuery)
- Long-poll for updates and manage the webhook registration

Error classification (TelegramSendError.retryable):
- Token invalid / bot blocked  → NOT retryable (needs human intervention)
- Chat not found               → NOT retryable
- Rate limiting (429)          → retryable  (backoff then retry)
- Network / timeout            → retryable  (transient)
- Unknown server error         → retryable  (optimistic)

HTTP session lifecycle:
- Uses the shared sender session from participium_bot.infra.http_client.
- Call close_all_sessions() during application shutdown.
"""
from __future__ import annotations

import aiohttp

from participium_bot.config import settings
from participium_bot.core.engine.actions import encode_action
from participium_bot.core.engine.domain import MediaItem
from participium_bot.core.engine.ports import (
    InlineKeyboard,
    Keyboard,
    LocationRequestKeyboard,
    RemoveKeyboard,
)
from participium_bot.infra.http_client import get_sender_session
from participium_bot.infra.logging_config import get_logger, mask_chat_id
from participium_bot.infra.media_fetchers.base import MediaFetcher
from participium_bot.infra.metrics import inc_counter

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _bot_url(method: str, token: str | None = None) -> str:
    """Build Telegram Bot API URL."""
    bot_token = token or settings.telegram_bot_token
    return f"{TELEGRAM_API_BASE}/bot{bot_token}/{method}"


def serialize_keyboard(keyboard: Keyboard | None) -> dict | None:
    """Convert an outbound keyboard to Bot API ``reply_markup``."""
    if keyboard is None:
        return None

    if isinstance(keyboard, InlineKeyboard):
        return {
            "inline_keyboard": [
                [
                    {"text": button.text, "callback_data": encode_action(button.action)}
                    for button in row
                ]
                for row in keyboard.rows
            ]
        }

    if isinstance(keyboard, LocationRequestKeyboard):
        return {
            "keyboard": [[{"text": keyboard.button_text, "request_location": True}]],
            "one_time_keyboard": True,
            "resize_keyboard": True,
        }

    if isinstance(keyboard, RemoveKeyboard):
        return {"remove_keyboard": True}

    raise TypeError(f"Unknown keyboard type: {type(keyboard).__name__}")


# ---------------------------------------------------------------------------
# Error type
# ---------------------------------------------------------------------------

class TelegramSendError(Exception):
    """Error calling the Telegram Bot API.

    Attributes:
        status:     HTTP status code (0 for connection-level errors).
        error_code: Telegram-specific error code from the response body.
        retryable:  Whether the caller should schedule a retry.
    """

    def __init__(
        self,
        status: int,
        error_code: int | None,
        message: str,
        *,
        retryable: bool = False,
    ):
        self.status = status
        self.error_code = error_code
        self.retryable = retryable
        super().__init__(f"Telegram API error {status} (code={error_code}): {message}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def send_text_message(
    chat_id: str,
    text: str,
    reply_markup: dict | None = None,
    token: str | None = None,
) -> dict:
    """
    Send a plain-text message via Telegram Bot API.

    No ``parse_mode`` is set: user-provided text echoed in the message
    must not be interpreted as Markdown/HTML.

    Raises:
        TelegramSendError: On API errors (check .retryable before scheduling retry)
    """
    payload: dict = {"chat_id": chat_id, "text": text}
    if reply_markup is not None:
        payload["reply_markup"] = reply_markup

    return await _send_request(_bot_url("sendMessage", token), payload, chat_id)


async def answer_callback_query(callback_query_id: str, token: str | None = None) -> dict:
    """Stop the loading spinner on a pressed inline button."""
    url = _bot_url("answerCallbackQuery", token)
    return await _send_request(url, {"callback_query_id": callback_query_id}, "system")


async def delete_webhook(token: str | None = None) -> dict:
    """Remove webhook so polling can work."""
    return await _send_request(_bot_url("deleteWebhook", token), {}, "system")


async def set_webhook(
    webhook_url: str,
    secret_token: str | None = None,
    token: str | None = None,
) -> dict:
    """
    Set webhook URL for Telegram bot.

    Args:
        webhook_url: Public HTTPS URL for receiving updates
        secret_token: Secret for X-Telegram-Bot-Api-Secret-Token header validation
        token: Bot token override
    """
    payload: dict = {
        "url": webhook_url,
        "allowed_updates": ["message", "callback_query"],
    }
    if secret_token:
        payload["secret_token"] = secret_token

    return await _send_request(_bot_url("setWebhook", token), payload, "system")


async def get_updates(
    offset: int | None = None,
    timeout: int = 30,
    token: str | None = None,
) -> list[dict]:
    """
    Long-poll for updates via getUpdates.

    Returns:
        List of Update dicts
    """
    url = _bot_url("getUpdates", token)
    payload: dict = {"timeout": timeout, "allowed_updates": ["message", "callback_query"]}
    if offset is not None:
        payload["offset"] = offset

    session = get_sender_session()
    try:
        async with session.post(
            url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=timeout + 10, connect=5),
        ) as resp:
            body = await _safe_response_json(resp)

            if resp.status == 200 and body and body.get("ok"):
                return body.get("result", [])

            error_desc = (body or {}).get("description", "Unknown error")
            error_code = (body or {}).get("error_code")

            raise TelegramSendError(
                resp.status, error_code, error_desc,
                retryable=resp.status == 429 or resp.status >= 500,
            )

    except TelegramSendError:
        raise
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.error(f"Telegram getUpdates connection error: {exc}")
        raise TelegramSendError(0, None, str(exc), retryable=True) from exc


# ---------------------------------------------------------------------------
# Chat gateway
# ---------------------------------------------------------------------------

class TelegramGateway:
    """
    ChatGateway over the Bot API.

    Outbound failures are logged and counted, never raised: a reply that
    cannot be delivered must not abort the update that produced it.
    """

    def __init__(self, fetcher: MediaFetcher, token: str | None = None):
        self.fetcher = fetcher
        self.token = token

    async def send_message(self, chat_id: str, text: str, keyboard: Keyboard | None = None) -> None:
        try:
            await send_text_message(chat_id, text, serialize_keyboard(keyboard), token=self.token)
            inc_counter("outbound_messages_total", status="sent")
        except TelegramSendError as err:
            logger.error(f"Telegram outbound send failed (chat={mask_chat_id(chat_id)}): {err}")
            inc_counter("outbound_messages_total", status="failed")

    async def answer_button(self, callback_query_id: str) -> None:
        try:
            await answer_callback_query(callback_query_id, token=self.token)
        except TelegramSendError as err:
            logger.warning(f"answerCallbackQuery failed: {err}")

    async def download_file(self, file_id: str) -> bytes:
        result = await self.fetcher.fetch(MediaItem(file_id=file_id))
        return result.data


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

async def _safe_response_json(resp: aiohttp.ClientResponse) -> dict | None:
    """Parse JSON from response, returning None if body is not valid JSON."""
    try:
        return await resp.json(content_type=None)
    except ValueError:
        logger.warning(f"Telegram API returned non-JSON body: status={resp.status}")
        return None


async def _send_request(url: str, payload: dict, chat_id: str) -> dict:
    """Execute a Telegram Bot API request with error classification."""
    try:
        session = get_sender_session()
        async with session.post(url, json=payload) as resp:
            body = await _safe_response_json(resp)

            if resp.status == 200 and body and body.get("ok"):
                result = body.get("result", {})
                msg_id = result.get("message_id", "unknown") if isinstance(result, dict) else "ok"
                logger.debug(f"Telegram API ok: to={mask_chat_id(chat_id)}, msg_id={msg_id}")
                return body

            error_desc = (body or {}).get("description", "Unknown error")
            error_code = (body or {}).get("error_code")

            # -- Auth failure: token invalid (DO NOT retry) --------
            if resp.status == 401 or error_code == 401:
                logger.error(f"Telegram API auth error (token invalid): {error_desc}")
                inc_counter("telegram_outbound_auth_error")
                raise TelegramSendError(resp.status, error_code, error_desc, retryable=False)

            # -- Forbidden: bot blocked by user (DO NOT retry) --
            if resp.status == 403:
                logger.warning(f"Telegram API forbidden: {error_desc}")
                inc_counter("telegram_outbound_forbidden")
                raise TelegramSendError(resp.status, error_code, error_desc, retryable=False)

            # -- Bad request: chat not found, message too long, etc. (DO NOT retry) --
            if resp.status == 400:
                logger.warning(f"Telegram API bad request: {error_desc}")
                inc_counter("telegram_outbound_bad_request")
                raise TelegramSendError(resp.status, error_code, error_desc, retryable=False)

            # -- Rate limit --------------
            if resp.status == 429:
                retry_after = (body or {}).get("parameters", {}).get("retry_after", 30)
                logger.warning(f"Telegram API rate limit, retry_after={retry_after}s")
                inc_counter("telegram_outbound_rate_limited")
                raise TelegramSendError(resp.status, error_code, error_desc, retryable=True)

            logger.error(f"Telegram API error: status={resp.status}, code={error_code}, msg={error_desc}")
            inc_counter("telegram_outbound_error")
            raise TelegramSendError(resp.status, error_code, error_desc, retryable=True)

    except TelegramSendError:
        raise
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.error(f"Telegram API connection error: {exc}")
        inc_counter("telegram_outbound_connection_error")
        raise TelegramSendError(0, None, str(exc), retryable=True) from exc

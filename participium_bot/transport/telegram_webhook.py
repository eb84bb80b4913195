# participium_bot/transport/telegram_webhook.py
"""
Telegram Bot API webhook handler.

Handles:
- POST /webhooks/telegram: inbound Updates from Telegram

Security / delivery:
- X-Telegram-Bot-Api-Secret-Token header validation (if configured)
- Update handled in a background task; Telegram gets 200 right away
- Malformed bodies are acknowledged with 200 so Telegram stops retrying
"""
from __future__ import annotations

import hmac

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from participium_bot.config import settings
from participium_bot.core.engine.use_cases import ReportBotEngine
from participium_bot.transport.adapters import TelegramAdapter
from participium_bot.transport.telegram_polling import _safe_create_task, process_update
from participium_bot.infra.logging_config import get_logger
from participium_bot.infra.metrics import inc_counter

logger = get_logger(__name__)

_adapter = TelegramAdapter()


def _verify_secret_token(request: Request, secret: str | None) -> bool:
    """
    Verify X-Telegram-Bot-Api-Secret-Token header.
    Returns True if valid or if secret token verification is disabled.
    """
    if not secret:
        return True

    header_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
    if not header_token:
        logger.warning("Telegram webhook: missing X-Telegram-Bot-Api-Secret-Token header")
        return False

    return hmac.compare_digest(header_token, secret)


async def telegram_webhook_handler(
    request: Request,
    *,
    engine_override: ReportBotEngine | None = None,
    secret: str | None = None,
) -> JSONResponse:
    """Handle a Telegram Bot API webhook Update (POST)."""
    webhook_secret = secret if secret is not None else settings.telegram_webhook_secret
    if not _verify_secret_token(request, webhook_secret):
        logger.error("Telegram webhook: secret token verification failed")
        inc_counter("webhook_validation_failures_total", provider="telegram")
        raise HTTPException(status_code=403, detail="Invalid secret token")

    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Telegram webhook: invalid JSON payload, returning 200 to suppress retries")
        inc_counter("telegram_webhook_malformed_payload")
        return JSONResponse({"ok": True}, status_code=200)

    if not isinstance(payload, dict):
        inc_counter("telegram_webhook_malformed_payload")
        return JSONResponse({"ok": True}, status_code=200)

    engine: ReportBotEngine = engine_override or request.app.state.engine
    update_id = payload.get("update_id", "unknown")

    _safe_create_task(
        process_update(engine, _adapter, payload),
        name=f"tg_webhook_update_{update_id}",
    )
    inc_counter("inbound_updates_total", provider="telegram")

    return JSONResponse({"ok": True}, status_code=200)

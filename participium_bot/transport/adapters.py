# participium_bot/transport/adapters.py
from __future__ import annotations

from participium_bot.core.engine.actions import decode_action
from participium_bot.core.engine.domain import InboundEvent, LocationData, MediaItem
from participium_bot.infra.logging_config import get_logger, mask_chat_id

logger = get_logger(__name__)


def _strip_bot_mention(text: str) -> str:
    """``"/start@MyBot arg"`` → ``"/start arg"``."""
    parts = text.split(" ", 1)
    parts[0] = parts[0].split("@")[0]
    return " ".join(parts)


def _username(sender: dict | None) -> str | None:
    username = (sender or {}).get("username")
    return username.lower() if username else None


class TelegramAdapter:
    """
    Adapter for Telegram Bot API updates.

    Handles two update types:
    {
      "update_id": 123456,
      "message": {
        "message_id": 42,
        "from": {"id": 123, "username": "Mario_Rossi", ...},
        "chat": {"id": 123, "type": "private", ...},
        "text": "Hello" | "location": {...} | "photo": [{...}, ...]
      }
    }
    {
      "update_id": 123457,
      "callback_query": {
        "id": "4382...",
        "from": {...},
        "message": {"chat": {"id": 123}, ...},
        "data": "cat_3"
      }
    }
    Everything else (edited messages, channel posts, ...) is dropped.
    """

    def adapt_update(self, update: dict) -> InboundEvent | None:
        """Convert one Update dict (polling or webhook) to an InboundEvent."""
        update_id = str(update.get("update_id", ""))

        if "callback_query" in update:
            return self._parse_callback(update["callback_query"], update_id)

        message = update.get("message")
        if not message:
            logger.debug(f"Telegram update: unsupported type, ignoring (keys={list(update.keys())})")
            return None
        return self._parse_message(message, update_id)

    def _parse_message(self, message: dict, update_id: str) -> InboundEvent | None:
        chat_id = str((message.get("chat") or {}).get("id", ""))
        if not chat_id:
            logger.warning("Telegram message: missing chat.id, ignoring")
            return None

        event = InboundEvent(
            chat_id=chat_id,
            event_id=update_id or str(message.get("message_id", "")),
            username=_username(message.get("from")),
        )

        if "location" in message:
            loc = message["location"] or {}
            lat = loc.get("latitude")
            lon = loc.get("longitude")
            if lat is not None and lon is not None:
                event.location = LocationData(latitude=float(lat), longitude=float(lon))

        elif message.get("photo"):
            # Telegram sends several sizes; the last one is the largest
            largest = message["photo"][-1]
            event.photo = MediaItem(
                file_id=largest.get("file_id", ""),
                content_type="image/jpeg",
                size_bytes=largest.get("file_size"),
            )

        elif "text" in message:
            text = message.get("text") or ""
            if text.startswith("/"):
                text = _strip_bot_mention(text)
            event.text = text

        if event.location is None and event.photo is None and event.text is None:
            logger.debug(f"Telegram message: no usable content (keys={list(message.keys())})")
            return None

        logger.info(
            f"Telegram message: chat={mask_chat_id(chat_id)}, update={update_id}, kind={event.kind}"
        )
        return event

    def _parse_callback(self, callback: dict, update_id: str) -> InboundEvent | None:
        callback_id = callback.get("id")
        chat_id = str(((callback.get("message") or {}).get("chat") or {}).get("id", ""))
        if not callback_id or not chat_id:
            logger.warning("Telegram callback_query: missing id or chat, ignoring")
            return None

        data = callback.get("data")
        action = decode_action(data)
        if action is None:
            logger.info(f"Telegram callback_query: unknown data {str(data)[:32]!r}")

        return InboundEvent(
            chat_id=chat_id,
            event_id=update_id or callback_id,
            username=_username(callback.get("from")),
            button=action,
            button_data=data,
            callback_query_id=callback_id,
        )

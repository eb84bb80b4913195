#!/usr/bin/env python3
"""
Register or remove the Telegram webhook for the report bot.

Usage:
    # Register the URL from TELEGRAM_WEBHOOK_URL / TELEGRAM_WEBHOOK_SECRET
    python scripts/set_webhook.py

    # Register an explicit URL
    python scripts/set_webhook.py --url https://bot.example.com/webhooks/telegram

    # Remove the webhook (switch back to polling)
    python scripts/set_webhook.py --delete

Environment:
    TELEGRAM_BOT_TOKEN: Bot token from @BotFather (required)
"""
import argparse
import asyncio
import sys

from participium_bot.config import settings
from participium_bot.infra.http_client import close_all_sessions
from participium_bot.transport.telegram_sender import (
    TelegramSendError,
    delete_webhook,
    set_webhook,
)


async def run(url: str | None, secret: str | None, delete: bool) -> int:
    try:
        if delete:
            await delete_webhook()
            print("Webhook removed")
        else:
            await set_webhook(url, secret_token=secret)
            print(f"Webhook set: {url}")
        return 0
    except TelegramSendError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        await close_all_sessions()


def main():
    parser = argparse.ArgumentParser(
        description="Register or remove the Telegram webhook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--url", "-u", help="Public HTTPS webhook URL (or TELEGRAM_WEBHOOK_URL)")
    parser.add_argument("--secret", "-s", help="Secret token (or TELEGRAM_WEBHOOK_SECRET)")
    parser.add_argument("--delete", "-d", action="store_true", help="Remove the webhook instead")

    args = parser.parse_args()

    if not settings.telegram_bot_token:
        print("Error: TELEGRAM_BOT_TOKEN environment variable not set", file=sys.stderr)
        sys.exit(1)

    url = args.url or settings.telegram_webhook_url
    if not args.delete and not url:
        print("Error: pass --url or set TELEGRAM_WEBHOOK_URL", file=sys.stderr)
        sys.exit(1)

    secret = args.secret or settings.telegram_webhook_secret
    sys.exit(asyncio.run(run(url, secret, args.delete)))


if __name__ == "__main__":
    main()

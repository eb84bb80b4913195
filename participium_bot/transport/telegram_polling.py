# participium_bot/transport/telegram_polling.py
"""
Telegram Bot API long-polling handler.

Alternative to webhook mode. Calls getUpdates in a loop with long-polling.
Simpler ops (no public URL or SSL required).

Each update is handled in its own task, so a slow geocoder or backend
call for one chat never holds up another chat.  Updates for the same chat
are serialized by the session store's per-chat lock.

Usage:
    poller = TelegramPoller(engine=engine)
    await poller.start()
    # ... on shutdown:
    await poller.stop()
"""
from __future__ import annotations

import asyncio

from participium_bot.core.engine.use_cases import ReportBotEngine
from participium_bot.transport.adapters import TelegramAdapter
from participium_bot.transport.telegram_sender import (
    get_updates,
    delete_webhook,
    TelegramSendError,
)
from participium_bot.infra.logging_config import get_logger, LogContext
from participium_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)

# Strong references: the event loop only keeps weak ones to running tasks
_background_tasks: set[asyncio.Task] = set()


def _safe_create_task(coro, *, name: str | None = None) -> asyncio.Task:
    """Create a background task with exception logging to avoid 'Task exception was never retrieved'."""
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    task.add_done_callback(_log_task_exception)
    return task


def _log_task_exception(task: asyncio.Task) -> None:
    """Callback: log unhandled exceptions from fire-and-forget tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"Background task {task.get_name()!r} failed: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__),
        )


async def process_update(engine: ReportBotEngine, adapter: TelegramAdapter, update: dict) -> None:
    """Adapt one raw Update and run it through the engine. Never raises."""
    event = adapter.adapt_update(update)
    if event is None:
        return

    log_ctx = LogContext(logger, chat_id=event.chat_id)
    try:
        result = await engine.process_event(event)
        log_ctx.debug(f"Telegram update processed: kind={result['kind']}, outcome={result['outcome']}")
    except Exception as exc:
        AppMetrics.update_failed(event.kind)
        log_ctx.error(
            f"Telegram update processing failed: {exc.__class__.__name__}: {exc}",
            exc_info=True,
        )


class TelegramPoller:
    """
    Long-polling loop for receiving Telegram updates.

    Error handling:
    - On API errors: exponential backoff (1s → 2s → 4s → ... → 30s max)
    - On processing errors: logged inside the per-update task
    - On cancellation: graceful shutdown, in-flight updates awaited
    """

    def __init__(
        self,
        engine: ReportBotEngine,
        poll_timeout: int = 30,
        *,
        token: str | None = None,
    ):
        self.engine = engine
        self.poll_timeout = poll_timeout
        self._token = token
        self._adapter = TelegramAdapter()
        self._task: asyncio.Task | None = None
        self._offset: int | None = None
        self._running = False
        self._backoff = 1  # seconds, doubles on error, max 30
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the polling loop as a background task."""
        if self._running:
            logger.warning("Telegram poller already running")
            return

        # Remove any existing webhook so polling can work
        try:
            await delete_webhook(token=self._token)
            logger.info("Telegram webhook removed (switching to polling mode)")
        except TelegramSendError as e:
            logger.warning(f"Could not delete Telegram webhook: {e}")

        self._running = True
        self._task = asyncio.create_task(self._poll_loop(), name="tg_poller")
        logger.info(f"Telegram poller started (timeout={self.poll_timeout}s)")

    async def stop(self) -> None:
        """Stop the polling loop gracefully."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("Telegram poller stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                updates = await get_updates(
                    offset=self._offset,
                    timeout=self.poll_timeout,
                    token=self._token,
                )

                self._backoff = 1

                for update in updates:
                    # Advance offset to acknowledge this update
                    update_id = update.get("update_id", 0)
                    self._offset = update_id + 1
                    self._spawn(update, update_id)

            except TelegramSendError as e:
                if not self._running:
                    break
                logger.error(f"Telegram polling error: {e}, backing off {self._backoff}s")
                await asyncio.sleep(self._backoff)
                self._backoff = min(self._backoff * 2, 30)

            except asyncio.CancelledError:
                break

            except Exception as e:
                if not self._running:
                    break
                logger.error(f"Telegram polling unexpected error: {e}", exc_info=True)
                await asyncio.sleep(self._backoff)
                self._backoff = min(self._backoff * 2, 30)

    def _spawn(self, update: dict, update_id: int) -> None:
        task = _safe_create_task(
            process_update(self.engine, self._adapter, update),
            name=f"tg_update_{update_id}",
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

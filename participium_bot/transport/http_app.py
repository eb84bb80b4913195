# participium_bot/transport/http_app.py
"""
HTTP application: lifecycle, health, metrics and the Telegram webhook.

Run with:
    uvicorn participium_bot.transport.http_app:app

In ``telegram_mode=polling`` (default) the lifespan starts a long-polling
loop; in ``webhook`` mode Telegram posts updates to /webhooks/telegram
(register the URL once with ``scripts/set_webhook.py``).
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from participium_bot.config import Settings, settings
from participium_bot.core.engine.photo_collector import PhotoCollector
from participium_bot.core.engine.ports import ChatGateway
from participium_bot.core.engine.submission import SubmissionBridge
from participium_bot.core.engine.use_cases import ReportBotEngine
from participium_bot.core.engine.wizard import ReportWizard
from participium_bot.core.handlers.report_steps import ReportStepHandlers
from participium_bot.infra.backend_client import ParticipiumBackendClient
from participium_bot.infra.boundaries import load_boundary
from participium_bot.infra.geocoding import NominatimResolver
from participium_bot.infra.http_client import close_all_sessions
from participium_bot.infra.logging_config import setup_logging, get_logger
from participium_bot.infra.media_fetchers.telegram_fetcher import TelegramMediaFetcher
from participium_bot.infra.memory_session_store import InMemorySessionStore
from participium_bot.infra.metrics import get_metrics_collector
from participium_bot.transport.telegram_polling import TelegramPoller
from participium_bot.transport.telegram_sender import TelegramGateway
from participium_bot.transport.telegram_webhook import telegram_webhook_handler

# Initialize logging first
setup_logging(
    level=settings.log_level,
    use_json=settings.is_production
)

logger = get_logger(__name__)


# ============================================================================
# WIRING
# ============================================================================

def build_engine(
    cfg: Settings,
    *,
    gateway: ChatGateway | None = None,
    store: InMemorySessionStore | None = None,
) -> ReportBotEngine:
    """Assemble the engine and its collaborators from settings."""
    if gateway is None:
        gateway = TelegramGateway(
            fetcher=TelegramMediaFetcher(cfg.telegram_bot_token or ""),
            token=cfg.telegram_bot_token,
        )
    store = store if store is not None else InMemorySessionStore()
    backend = ParticipiumBackendClient(cfg.backend_api_url, cfg.backend_api_token)

    resolver = NominatimResolver(
        load_boundary(cfg.city_boundary_path),
        base_url=cfg.nominatim_base_url,
        user_agent=cfg.nominatim_user_agent,
        city=cfg.geocoding_city,
        country=cfg.geocoding_country,
    )
    steps = ReportStepHandlers(
        resolver,
        PhotoCollector(gateway, cfg.photo_max_size_bytes),
        call_timeout=cfg.external_call_timeout_seconds,
        max_photo_mb=cfg.photo_max_size_mb,
    )
    wizard = ReportWizard(
        store=store,
        users=backend,
        steps=steps,
        submission=SubmissionBridge(backend),
        call_timeout=cfg.external_call_timeout_seconds,
    )

    get_metrics_collector().register_gauge("active_sessions", lambda: len(store))

    return ReportBotEngine(
        gateway=gateway,
        wizard=wizard,
        users=backend,
        call_timeout=cfg.external_call_timeout_seconds,
    )


# ============================================================================
# LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""

    # STARTUP
    logger.info(
        f"Starting application: env={settings.app_env}, telegram_mode={settings.telegram_mode}"
    )

    if settings.is_production and settings.log_level.upper() == "DEBUG":
        logger.critical("LOG_LEVEL=DEBUG is not allowed in production")
        raise RuntimeError("LOG_LEVEL=DEBUG in production")

    fastapi_app.state.engine = build_engine(settings)

    poller: TelegramPoller | None = None
    if not settings.telegram_enabled:
        logger.warning("TELEGRAM_BOT_TOKEN not set: Telegram bot will not be started")
    elif settings.telegram_mode == "polling":
        poller = TelegramPoller(
            fastapi_app.state.engine,
            poll_timeout=settings.telegram_poll_timeout,
            token=settings.telegram_bot_token,
        )
        await poller.start()
    else:
        logger.info("Telegram webhook mode: waiting for updates on /webhooks/telegram")

    fastapi_app.state.poller = poller

    yield

    # SHUTDOWN
    logger.info("Shutting down application")

    if poller is not None:
        await poller.stop()

    await close_all_sessions()
    logger.info("Application shutdown complete")


# ============================================================================
# CREATE APP
# ============================================================================

app = FastAPI(
    title="Participium Report Bot",
    description="Telegram intake for municipal issue reports",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error(f"Server error: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(f"Unhandled exception: {exc.__class__.__name__}", exc_info=True)

    # Never leak internals in production
    error_message = "Internal server error" if settings.is_production else f"{exc.__class__.__name__}: {exc}"

    return JSONResponse(
        status_code=500,
        content={"error": error_message},
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
def health():
    """Basic health check for load balancers and monitoring."""
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    """In-process counters and histograms."""
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return get_metrics_collector().get_metrics()


@app.post("/webhooks/telegram")
async def webhook_telegram(request: Request):
    """
    Telegram Bot API webhook endpoint.

    - X-Telegram-Bot-Api-Secret-Token validation (if configured)
    - Returns 200 right away; the update is handled in the background
    """
    return await telegram_webhook_handler(request)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "participium_bot.transport.http_app:app",
        host="0.0.0.0",
        port=8099,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
        access_log=not settings.is_production,
        server_header=False,
    )

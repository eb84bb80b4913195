# participium_bot/infra/logging_config.py
"""
Logging setup: JSON lines in production, coloured console output in dev.

Conversation context travels as ``extra`` fields on the record; the
fields a formatter knows about are listed in ``CONTEXT_FIELDS``.
"""
import logging
import sys
import json
from datetime import datetime, timezone

# (record attribute, console label)
CONTEXT_FIELDS = (
    ("chat_id", "chat"),
    ("step", "step"),
    ("report_id", "report"),
)

_NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "aiohttp.access": logging.WARNING,
    "PIL": logging.INFO,
}


def _context_of(record: logging.LogRecord) -> dict:
    return {
        attr: getattr(record, attr)
        for attr, _ in CONTEXT_FIELDS
        if hasattr(record, attr)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            **_context_of(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        context = _context_of(record)
        if "chat_id" in context:
            # Chat ids are user identifiers; never print them whole
            context["chat_id"] = mask_chat_id(str(context["chat_id"]))
        labels = dict(CONTEXT_FIELDS)
        parts = " ".join(f"{labels[k]}={v}" for k, v in context.items())
        suffix = f" [{parts}]" if parts else ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{record.name}{suffix} - {record.getMessage()}"
        )
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str = "INFO", use_json: bool = False) -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        use_json: JSON lines instead of the coloured console format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())
    root_logger.addHandler(handler)

    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)

    logging.info(f"Logging configured: level={level}, json={use_json}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """Logger bound to one conversation: ``LogContext(logger, chat_id=...).info(...)``"""

    def __init__(
            self,
            logger: logging.Logger,
            chat_id: str | None = None,
            step: str | None = None,
            report_id: str | None = None,
    ):
        bound = {"chat_id": chat_id, "step": step, "report_id": report_id}
        super().__init__(logger, {k: v for k, v in bound.items() if v is not None})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def mask_chat_id(chat_id: str) -> str:
    """Keep only the edges of a chat id: ``"123456789"`` → ``"1234***89"``."""
    if len(chat_id) > 6:
        return chat_id[:4] + "***" + chat_id[-2:]
    return chat_id


def mask_coordinates(lat: float, lon: float) -> str:
    """``mask_coordinates(45.0703, 7.6869)`` → ``"45.0**, 7.6**"`` (about 10 km precision)."""
    return f"{lat:.1f}**, {lon:.1f}**"

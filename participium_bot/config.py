# participium_bot/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"

    # Telegram Channel
    telegram_bot_token: str | None = None  # Bot token from @BotFather
    telegram_mode: Literal["polling", "webhook"] = "polling"
    telegram_webhook_url: str | None = None  # Public HTTPS URL, e.g. https://bot.example.com/webhooks/telegram
    telegram_webhook_secret: str | None = None  # Secret token for X-Telegram-Bot-Api-Secret-Token
    telegram_poll_timeout: int = 30  # getUpdates long-poll timeout (seconds)

    # Participium backend (user lookup, account linking, report creation)
    backend_api_url: str = "http://localhost:3001/api"
    backend_api_token: str | None = None  # Service token sent as Bearer

    # Geocoding (Nominatim / OpenStreetMap)
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "ParticipiumBot/1.0 (telegram report intake)"
    geocoding_city: str = "Torino"
    geocoding_country: str = "Italia"

    # Municipal boundary (GeoJSON Polygon/MultiPolygon). Bundled Turin boundary when unset.
    city_boundary_path: str | None = None

    # Upper bound for every external call made while handling a chat update
    external_call_timeout_seconds: float = 10.0

    # Photos
    photo_max_size_mb: int = 5

    # Monitoring
    enable_metrics: bool = True

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def photo_max_size_bytes(self) -> int:
        return self.photo_max_size_mb * 1024 * 1024

    @property
    def telegram_enabled(self) -> bool:
        """Check if the Telegram channel is configured"""
        return bool(self.telegram_bot_token)

    def validate_required_for_production(self) -> list[str]:
        """Validate that required settings exist for production"""
        if not self.is_production:
            return []

        missing = []

        required_fields = [
            ("telegram_bot_token", self.telegram_bot_token),
            ("backend_api_token", self.backend_api_token),
        ]
        if self.telegram_mode == "webhook":
            required_fields.append(("telegram_webhook_url", self.telegram_webhook_url))

        for field_name, value in required_fields:
            if not value:
                missing.append(field_name)

        return missing


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    if not s.telegram_bot_token:
        warnings.append("telegram_bot_token is not set: the Telegram bot will not be started.")

    if s.telegram_mode == "webhook" and not s.telegram_webhook_secret:
        warnings.append(
            "telegram_mode=webhook but telegram_webhook_secret is not set "
            "(anyone who knows the URL can post updates)."
        )

    if not s.backend_api_token:
        warnings.append("backend_api_token is not set: backend calls are unauthenticated.")

    if s.external_call_timeout_seconds <= 0:
        warnings.append("external_call_timeout_seconds <= 0: external calls will time out immediately.")

    return warnings


def validate_or_warn(s: "Settings") -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    for msg in warn_on_risky_config(s):
        print(f"[WARN][config] {msg}")

settings = Settings()
validate_or_warn(settings)

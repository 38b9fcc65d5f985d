"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "http://localhost:5173",
    "https://telegram-calories-bot.pages.dev",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    telegram_allowed_user_ids: str | None = None
    webhook_url: str | None = None
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    estimate_timeout_seconds: float = 30
    session_idle_timeout_seconds: int = 900
    session_sweep_interval_seconds: int = 300
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    miniapp_url: str | None = None
    tunnel_url: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_user_ids(raw: str | None) -> set[int] | None:
    """Parse allowed Telegram user IDs from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[int] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        if value.isdigit():
            ids.add(int(value))
    return ids or None


def cors_origins(settings: Settings) -> list[str]:
    """Return the Mini App origins allowed to call the log API."""
    origins = list(DEFAULT_CORS_ORIGINS)
    for extra in (settings.tunnel_url, settings.miniapp_url):
        if extra and extra not in origins:
            origins.append(extra)
    return origins

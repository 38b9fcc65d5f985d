"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from calories_bot.adapters.openai_vision_client import OpenAIVisionClient
from calories_bot.adapters.supabase_log_repository import SupabaseLogRepository
from calories_bot.adapters.telegram_client import (
    BotSetupClient,
    HttpxTelegramClient,
    Sender,
)
from calories_bot.config import Settings
from calories_bot.services.conversation import EstimateConversation
from calories_bot.services.estimator import Estimator, VisionEstimator
from calories_bot.services.logs import InMemoryLogRepository, LogRepository, LogService
from calories_bot.services.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    sender: Sender
    bot_setup: BotSetupClient
    session_manager: SessionManager
    estimator: Estimator
    log_service: LogService
    conversation: EstimateConversation
    close_resources: Callable[[], Awaitable[None]]


def build_log_repository(settings: Settings) -> LogRepository:
    """Use Supabase when credentials are configured, memory otherwise."""
    if settings.supabase_url and settings.supabase_service_key:
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseLogRepository(client)
    logger.info("Supabase not configured; calorie logs are kept in memory")
    return InMemoryLogRepository()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    session_manager = SessionManager(
        idle_timeout=timedelta(seconds=resolved_settings.session_idle_timeout_seconds),
        sweep_interval=timedelta(
            seconds=resolved_settings.session_sweep_interval_seconds
        ),
    )
    estimator = VisionEstimator(
        client=OpenAIVisionClient.create(resolved_settings.openai_api_key),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.estimate_timeout_seconds,
    )
    log_service = LogService(build_log_repository(resolved_settings))
    conversation = EstimateConversation(
        sessions=session_manager,
        sender=telegram_client,
        estimator=estimator,
        log_service=log_service,
        debug_errors=resolved_settings.environment == "local",
    )

    async def close_resources() -> None:
        await telegram_client.close()

    return AppContainer(
        settings=resolved_settings,
        sender=telegram_client,
        bot_setup=telegram_client,
        session_manager=session_manager,
        estimator=estimator,
        log_service=log_service,
        conversation=conversation,
        close_resources=close_resources,
    )

"""Shared test fixtures."""

import pytest

from calories_bot.config import Settings
from calories_bot.containers import AppContainer
from calories_bot.services.conversation import EstimateConversation
from calories_bot.services.logs import InMemoryLogRepository, LogService
from calories_bot.services.sessions import SessionManager
from tests.fakes import FakeEstimator, FakeSender


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        openai_api_key="openai-key",
        environment="test",
    )


@pytest.fixture
def telegram_client() -> FakeSender:
    return FakeSender()


@pytest.fixture
def estimator() -> FakeEstimator:
    return FakeEstimator()


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def log_service() -> LogService:
    return LogService(InMemoryLogRepository())


@pytest.fixture
def conversation(
    session_manager: SessionManager,
    telegram_client: FakeSender,
    estimator: FakeEstimator,
    log_service: LogService,
) -> EstimateConversation:
    return EstimateConversation(
        sessions=session_manager,
        sender=telegram_client,
        estimator=estimator,
        log_service=log_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    telegram_client: FakeSender,
    estimator: FakeEstimator,
    session_manager: SessionManager,
    log_service: LogService,
    conversation: EstimateConversation,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        sender=telegram_client,
        bot_setup=telegram_client,
        session_manager=session_manager,
        estimator=estimator,
        log_service=log_service,
        conversation=conversation,
        close_resources=close_resources,
    )

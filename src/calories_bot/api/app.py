"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calories_bot.api.auth import INIT_DATA_HEADER
from calories_bot.api.logs import router as logs_router
from calories_bot.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
)
from calories_bot.app_logging import configure_logging
from calories_bot.config import cors_origins, parse_allowed_user_ids
from calories_bot.containers import AppContainer
from calories_bot.telegram_commands import (
    CHAT_MENU_BUTTON,
    BotCommand,
    command_text,
    telegram_commands,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            await state_container.bot_setup.set_my_commands(telegram_commands())
            await state_container.bot_setup.set_chat_menu_button(CHAT_MENU_BUTTON)
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        webhook_url = state_container.settings.webhook_url
        if webhook_url:
            try:
                await state_container.bot_setup.set_webhook(webhook_url)
            except Exception:
                logger.exception("Failed to register Telegram webhook")
        state_container.session_manager.start_expiry()
        yield
        await state_container.session_manager.stop_expiry()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(container.settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", INIT_DATA_HEADER],
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - started) * 1000,
            )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {key: error[key] for key in ("loc", "msg", "type") if key in error}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": errors}
        )

    app.include_router(logs_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        user_id = _extract_user_id(update)
        if user_id is not None and not _is_user_allowed(user_id, allowed_user_ids):
            if update.callback_query:
                await state_container.sender.answer_callback_query(
                    update.callback_query.id,
                    text="Not authorized.",
                )
            elif update.message:
                await state_container.sender.send_message(
                    chat_id=update.message.chat.id,
                    text="This bot is private.",
                )
            return {"status": "ok"}
        if update.callback_query:
            await _dispatch_callback(state_container, update.callback_query)
        elif update.message:
            await _dispatch_message(state_container, update.message)
        return {"status": "ok"}

    return app


async def _dispatch_callback(
    state_container: AppContainer, callback: TelegramCallbackQuery
) -> None:
    chat_id = callback.message.chat.id if callback.message else callback.from_user.id
    await state_container.conversation.handle_callback(
        user_id=callback.from_user.id,
        chat_id=chat_id,
        callback_id=callback.id,
        data=callback.data,
    )


async def _dispatch_message(
    state_container: AppContainer, message: TelegramMessage
) -> None:
    conversation = state_container.conversation
    user_id = message.from_user.id
    chat_id = message.chat.id
    command = _parse_command(message.text)
    if command == command_text(BotCommand.START):
        await conversation.handle_start(chat_id)
    elif command == command_text(BotCommand.ESTIMATE):
        await conversation.handle_estimate(user_id, chat_id)
    elif message.photo:
        photo = _select_largest_photo(message.photo)
        await conversation.handle_photo(
            user_id, chat_id, photo.file_id, media_group_id=message.media_group_id
        )
    elif message.document:
        await conversation.handle_document(
            user_id,
            chat_id,
            message.document.file_id,
            message.document.mime_type,
            media_group_id=message.media_group_id,
        )


def _parse_command(text: str | None) -> str | None:
    """Return the leading ``/command`` without any ``@botname`` suffix."""
    if not text or not text.startswith("/"):
        return None
    return text.split(maxsplit=1)[0].split("@", 1)[0].lower()


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _extract_user_id(update: TelegramUpdate) -> int | None:
    """Extract Telegram user id from update, if present."""
    if update.callback_query:
        return update.callback_query.from_user.id
    if update.message:
        return update.message.from_user.id
    return None


def _is_user_allowed(user_id: int, allowed: set[int] | None) -> bool:
    """Return true when the user is allowed to interact with the bot."""
    return allowed is None or user_id in allowed

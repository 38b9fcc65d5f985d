"""Conversation flow for the /estimate command.

The handlers decide which transitions are legal: images are only processed
while the session awaits one, everything else is ignored. Session state itself
lives in :class:`SessionManager`, which accepts any transition.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from calories_bot.adapters.telegram_client import Sender
from calories_bot.domain.estimates import EstimateResult
from calories_bot.domain.logs import LogCreate
from calories_bot.domain.sessions import SessionState
from calories_bot.services.estimator import Estimator
from calories_bot.services.logs import LogService
from calories_bot.services.sessions import SessionManager
from calories_bot.telegram_commands import CallbackAction

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})

WELCOME_TEXT = (
    "👋 Welcome to Calorie Estimation Bot!\n\n"
    "Send /estimate command, upload a photo of your food, and I'll estimate "
    "its calories.\n\n"
    "After each result you can tap Re-estimate to send another photo or "
    "Cancel to stop."
)
ESTIMATE_PROMPT_TEXT = "📸 Please send a food image for calorie estimation"
RE_ESTIMATE_PROMPT_TEXT = "📸 Please send another food image"
PROCESSING_TEXT = "⏳ Analyzing your image..."
CANCELED_TEXT = "Estimation canceled. Use /estimate to start again."

UNSUPPORTED_FORMAT_ERROR = (
    "Unsupported format. Please send JPEG, PNG, or WebP images only."
)
MULTIPLE_IMAGES_ERROR = "Please send exactly one image (not multiple)"
DOWNLOAD_ERROR = "Failed to download image. Please try again."
ESTIMATE_ERROR = "API error. Please try again later."
NO_FOOD_ERROR = "No food detected in image. Please send an image containing food."


@dataclass
class EstimateConversation:
    """Orchestrates the estimate flow between Telegram and the estimator."""

    sessions: SessionManager
    sender: Sender
    estimator: Estimator
    log_service: LogService | None = None
    debug_errors: bool = False

    async def handle_start(self, chat_id: int) -> None:
        """Send the welcome message with usage instructions."""
        await self.sender.send_message(chat_id=chat_id, text=WELCOME_TEXT)

    async def handle_estimate(self, user_id: int, chat_id: int) -> None:
        """Start a flow: wait for a food image."""
        self.sessions.update_state(user_id, SessionState.AWAITING_IMAGE)
        message_id = await self.sender.send_message(
            chat_id=chat_id,
            text=ESTIMATE_PROMPT_TEXT,
            reply_markup=_cancel_keyboard(),
        )
        self.sessions.set_pending_message(user_id, message_id)

    async def handle_photo(
        self,
        user_id: int,
        chat_id: int,
        file_id: str,
        media_group_id: str | None = None,
    ) -> None:
        """Handle a compressed photo; Telegram always re-encodes these as JPEG."""
        if not self._awaiting_image(user_id):
            return
        if media_group_id is not None:
            await self._send_error(chat_id, MULTIPLE_IMAGES_ERROR)
            return
        await self._process_image(user_id, chat_id, file_id, "image/jpeg")

    async def handle_document(
        self,
        user_id: int,
        chat_id: int,
        file_id: str,
        mime_type: str | None,
        media_group_id: str | None = None,
    ) -> None:
        """Handle an uncompressed image sent as a file."""
        if not self._awaiting_image(user_id):
            return
        if media_group_id is not None:
            await self._send_error(chat_id, MULTIPLE_IMAGES_ERROR)
            return
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            await self._send_error(chat_id, UNSUPPORTED_FORMAT_ERROR)
            return
        await self._process_image(user_id, chat_id, file_id, mime_type)

    async def handle_callback(
        self, user_id: int, chat_id: int, callback_id: str, data: str | None
    ) -> None:
        """Dispatch an inline button press."""
        action = (data or "").strip()
        logger.info("User %s pressed button %r", user_id, action)
        if action == CallbackAction.RE_ESTIMATE:
            await self.handle_re_estimate(user_id, chat_id, callback_id)
        elif action == CallbackAction.CANCEL:
            await self.handle_cancel(user_id, chat_id, callback_id)
        else:
            logger.warning("Unknown callback data %r from user %s", action, user_id)
            await self.sender.answer_callback_query(callback_id, text="Unknown action")

    async def handle_re_estimate(
        self, user_id: int, chat_id: int, callback_id: str
    ) -> None:
        """Ask for another image; earlier results stay in the chat."""
        await self._answer_callback(callback_id, "Send another image")
        self.sessions.update_state(user_id, SessionState.AWAITING_IMAGE)
        message_id = await self.sender.send_message(
            chat_id=chat_id,
            text=RE_ESTIMATE_PROMPT_TEXT,
            reply_markup=_cancel_keyboard(),
        )
        self.sessions.set_pending_message(user_id, message_id)

    async def handle_cancel(self, user_id: int, chat_id: int, callback_id: str) -> None:
        """Drop the session and confirm; earlier messages stay in the chat."""
        await self._answer_callback(callback_id, "Estimation canceled")
        self.sessions.delete_session(user_id)
        await self.sender.send_message(chat_id=chat_id, text=CANCELED_TEXT)
        logger.info("User %s canceled the estimate flow", user_id)

    async def _process_image(
        self, user_id: int, chat_id: int, file_id: str, mime_type: str
    ) -> None:
        self.sessions.update_state(user_id, SessionState.PROCESSING)
        processing_message_id: int | None = None
        try:
            processing_message_id = await self.sender.send_message(
                chat_id=chat_id, text=PROCESSING_TEXT
            )
        except Exception:
            logger.exception("Failed to send processing message to user %s", user_id)

        try:
            image_bytes = await self.sender.download_file_bytes(file_id)
        except Exception as exc:
            logger.exception(
                "Failed to download Telegram file", extra={"file_id": file_id}
            )
            self.sessions.update_state(user_id, SessionState.IDLE)
            await self._send_error(chat_id, DOWNLOAD_ERROR, exc)
            return

        try:
            result = await self.estimator.estimate(image_bytes, mime_type)
        except Exception as exc:
            logger.exception("Calorie estimation failed for user %s", user_id)
            self.sessions.update_state(user_id, SessionState.IDLE)
            await self._delete_message(chat_id, processing_message_id)
            await self._send_error(chat_id, ESTIMATE_ERROR, exc)
            return

        if not result.has_food():
            self.sessions.update_state(user_id, SessionState.IDLE)
            await self._delete_message(chat_id, processing_message_id)
            await self._send_error(chat_id, NO_FOOD_ERROR)
            return

        await self._delete_message(chat_id, processing_message_id)
        try:
            result_message_id = await self.sender.send_message(
                chat_id=chat_id,
                text=format_estimate(result),
                reply_markup=_result_keyboard(),
            )
        except Exception:
            self.sessions.update_state(user_id, SessionState.IDLE)
            raise

        self._save_log(user_id, result)
        self.sessions.update_state(user_id, SessionState.AWAITING_IMAGE)
        self.sessions.set_pending_message(user_id, result_message_id)

    def _awaiting_image(self, user_id: int) -> bool:
        session = self.sessions.get_session(user_id)
        return session.state == SessionState.AWAITING_IMAGE

    def _save_log(self, user_id: int, result: EstimateResult) -> None:
        if self.log_service is None:
            return
        try:
            self.log_service.create_log(
                user_id,
                LogCreate(
                    food_items=result.items,
                    calories=result.calories,
                    confidence=result.confidence,
                    timestamp=datetime.now(tz=UTC),
                ),
            )
        except Exception:
            logger.exception("Failed to save log entry for user %s", user_id)

    async def _answer_callback(self, callback_id: str, text: str) -> None:
        try:
            await self.sender.answer_callback_query(callback_id, text=text)
        except Exception:
            logger.exception("Failed to answer callback %s", callback_id)

    async def _delete_message(self, chat_id: int, message_id: int | None) -> None:
        if message_id is None:
            return
        try:
            await self.sender.delete_message(chat_id, message_id)
        except Exception:
            logger.warning(
                "Failed to delete message %s in chat %s", message_id, chat_id
            )

    async def _send_error(
        self, chat_id: int, message: str, exc: Exception | None = None
    ) -> None:
        text = f"❌ {message}"
        if exc is not None and self.debug_errors:
            text = f"{text} (debug: {type(exc).__name__}: {exc})"
        await self.sender.send_message(chat_id=chat_id, text=text)


def format_estimate(result: EstimateResult) -> str:
    """Format an estimate as the fixed-layout result message."""
    items = ", ".join(result.items) if result.items else "None detected"
    return (
        "🍽️ Calorie Estimate\n\n"
        f"Estimated Calories: {result.calories} kcal\n"
        f"Confidence: {result.confidence.capitalize()}\n\n"
        f"Detected Items: {items}"
    )


def _inline_keyboard(buttons: list[tuple[str, str]]) -> dict:
    """Build a single-row Telegram inline keyboard payload."""
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback} for label, callback in buttons]
        ]
    }


def _cancel_keyboard() -> dict:
    return _inline_keyboard([("Cancel", CallbackAction.CANCEL.value)])


def _result_keyboard() -> dict:
    return _inline_keyboard(
        [
            ("Re-estimate", CallbackAction.RE_ESTIMATE.value),
            ("Cancel", CallbackAction.CANCEL.value),
        ]
    )

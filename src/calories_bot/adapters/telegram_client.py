"""Telegram Bot API client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

TELEGRAM_API_URL = "https://api.telegram.org"


class Sender(Protocol):
    """Outbound Telegram operations used by the conversation."""

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> int:
        """Send a text message and return its message id."""

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        """Delete a previously sent message."""

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a Telegram callback query."""

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download a Telegram file and return its bytes."""


class BotSetupClient(Protocol):
    """Bot configuration calls made once at startup."""

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""

    async def set_webhook(self, url: str) -> None:
        """Point Telegram at the webhook endpoint."""


@dataclass
class HttpxTelegramClient(Sender, BotSetupClient):
    """Telegram client implemented with httpx."""

    bot_token: str
    http_client: httpx.AsyncClient
    base_url: str = TELEGRAM_API_URL

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramClient":
        """Create a Telegram client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> int:
        """Send a message using Telegram's sendMessage API."""
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        result = await self._call("sendMessage", payload)
        return int(result["message_id"])

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        """Delete a message using Telegram's deleteMessage API."""
        await self._call(
            "deleteMessage", {"chat_id": chat_id, "message_id": message_id}
        )

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a callback query using Telegram's API."""
        payload: dict[str, object] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download Telegram file bytes via getFile."""
        get_file_url = f"{self.base_url}/bot{self.bot_token}/getFile"
        response = await self.http_client.get(
            get_file_url, params={"file_id": file_id}, timeout=10
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise RuntimeError("Telegram getFile failed")
        file_path = payload["result"]["file_path"]
        download_url = f"{self.base_url}/file/bot{self.bot_token}/{file_path}"
        file_response = await self.http_client.get(download_url, timeout=20)
        file_response.raise_for_status()
        return file_response.content

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""
        await self._call("setMyCommands", {"commands": commands})

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""
        await self._call(
            "setChatMenuButton", {"menu_button": menu_button or {"type": "commands"}}
        )

    async def set_webhook(self, url: str) -> None:
        """Register the webhook URL with Telegram."""
        await self._call(
            "setWebhook",
            {"url": url, "allowed_updates": ["message", "callback_query"]},
        )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _call(self, method: str, payload: dict[str, object]) -> dict:
        url = f"{self.base_url}/bot{self.bot_token}/{method}"
        response = await self.http_client.post(url, json=payload, timeout=10)
        response.raise_for_status()
        body = response.json()
        if not body.get("ok"):
            raise RuntimeError(f"Telegram {method} failed: {body.get('description')}")
        result = body.get("result")
        return result if isinstance(result, dict) else {}

"""Telegram bot command and button configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Welcome message and usage")
    ESTIMATE = TelegramCommand("estimate", "Estimate calories from a food photo")


class CallbackAction(str, Enum):
    """Inline button callback payloads."""

    RE_ESTIMATE = "re_estimate"
    CANCEL = "cancel"


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def command_text(command: BotCommand) -> str:
    """Return the slash form of a command, e.g. ``/estimate``."""
    return f"/{command.value.command}"


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}

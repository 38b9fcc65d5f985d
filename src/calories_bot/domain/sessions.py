"""Domain models for the estimate conversation."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class SessionState(StrEnum):
    """Step of a user's /estimate flow."""

    IDLE = "idle"
    AWAITING_IMAGE = "awaiting_image"
    PROCESSING = "processing"


@dataclass(frozen=True)
class Session:
    """Read-only snapshot of a user's conversation session."""

    user_id: int
    state: SessionState
    last_activity: datetime
    pending_message_id: int | None = None

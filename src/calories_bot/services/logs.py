"""Calorie log storage and business rules."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from calories_bot.domain.logs import CalorieLog, LogCreate, LogUpdate

logger = logging.getLogger(__name__)


class LogNotFoundError(LookupError):
    """Raised when a log does not exist or belongs to another user."""


class LogRepository(Protocol):
    """Persistence interface for calorie logs."""

    def add(self, log: CalorieLog) -> None:
        """Store a new log entry."""

    def get(self, log_id: str) -> CalorieLog | None:
        """Return a log by id, if present."""

    def list_for_user(self, user_id: int) -> list[CalorieLog]:
        """Return all logs owned by a user."""

    def save(self, log: CalorieLog) -> None:
        """Replace an existing log entry."""

    def remove(self, log_id: str) -> None:
        """Delete a log entry."""


class InMemoryLogRepository(LogRepository):
    """Process-local log storage guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._logs: dict[str, CalorieLog] = {}

    def add(self, log: CalorieLog) -> None:
        with self._lock:
            self._logs[log.id] = log

    def get(self, log_id: str) -> CalorieLog | None:
        with self._lock:
            return self._logs.get(log_id)

    def list_for_user(self, user_id: int) -> list[CalorieLog]:
        with self._lock:
            return [log for log in self._logs.values() if log.user_id == user_id]

    def save(self, log: CalorieLog) -> None:
        with self._lock:
            self._logs[log.id] = log

    def remove(self, log_id: str) -> None:
        with self._lock:
            self._logs.pop(log_id, None)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class LogService:
    """Create, list, edit and delete calorie logs on behalf of a user."""

    repository: LogRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    def create_log(self, user_id: int, payload: LogCreate) -> CalorieLog:
        """Validate and store a new log entry for the user."""
        now = self.clock()
        log = CalorieLog(
            id=str(uuid4()),
            user_id=user_id,
            food_items=payload.food_items,
            calories=payload.calories,
            confidence=payload.confidence,
            timestamp=payload.timestamp or now,
            created_at=now,
            updated_at=now,
        )
        self.repository.add(log)
        logger.info(
            "Created log %s for user %s (%s kcal, %s items)",
            log.id,
            user_id,
            log.calories,
            len(log.food_items),
        )
        return log

    def list_logs(self, user_id: int) -> list[CalorieLog]:
        """Return the user's logs, newest first."""
        logs = self.repository.list_for_user(user_id)
        return sorted(logs, key=lambda log: log.timestamp, reverse=True)

    def update_log(self, user_id: int, log_id: str, update: LogUpdate) -> CalorieLog:
        """Apply a partial update to a log the user owns."""
        current = self._owned_log(user_id, log_id)
        changes = update.model_dump(exclude_none=True)
        merged = current.model_dump() | changes | {"updated_at": self.clock()}
        updated = CalorieLog.model_validate(merged)
        self.repository.save(updated)
        return updated

    def delete_log(self, user_id: int, log_id: str) -> None:
        """Delete a log the user owns."""
        self._owned_log(user_id, log_id)
        self.repository.remove(log_id)
        logger.info("Deleted log %s for user %s", log_id, user_id)

    def _owned_log(self, user_id: int, log_id: str) -> CalorieLog:
        log = self.repository.get(log_id)
        if log is None:
            raise LogNotFoundError("log not found")
        if log.user_id != user_id:
            logger.warning(
                "User %s tried to access log %s of another user", user_id, log_id
            )
            raise LogNotFoundError("log not found")
        return log

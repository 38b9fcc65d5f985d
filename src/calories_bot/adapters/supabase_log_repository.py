"""Supabase-backed calorie log repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from calories_bot.domain.logs import CalorieLog
from calories_bot.services.logs import LogRepository

_COLUMNS = (
    "id, telegram_user_id, food_items, calories, confidence, logged_at, "
    "created_at, updated_at"
)


@dataclass
class SupabaseLogRepository(LogRepository):
    """Supabase implementation for calorie logs."""

    client: Client
    table_name: str = "calorie_logs"

    def add(self, log: CalorieLog) -> None:
        """Insert a log row."""
        response = self.client.table(self.table_name).insert(_to_row(log)).execute()
        if not response.data:
            raise RuntimeError("Failed to create calorie log in Supabase")

    def get(self, log_id: str) -> CalorieLog | None:
        """Return a log by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("id", log_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _from_row(response.data[0])

    def list_for_user(self, user_id: int) -> list[CalorieLog]:
        """Return a user's logs ordered by log time, newest first."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("telegram_user_id", user_id)
            .order("logged_at", desc=True)
            .execute()
        )
        return [_from_row(row) for row in response.data or []]

    def save(self, log: CalorieLog) -> None:
        """Update every mutable column of a log row."""
        row = _to_row(log)
        row.pop("id")
        row.pop("created_at")
        self.client.table(self.table_name).update(row).eq("id", log.id).execute()

    def remove(self, log_id: str) -> None:
        """Delete a log row."""
        self.client.table(self.table_name).delete().eq("id", log_id).execute()


def _to_row(log: CalorieLog) -> dict[str, object]:
    return {
        "id": log.id,
        "telegram_user_id": log.user_id,
        "food_items": list(log.food_items),
        "calories": log.calories,
        "confidence": log.confidence,
        "logged_at": log.timestamp.isoformat(),
        "created_at": log.created_at.isoformat(),
        "updated_at": log.updated_at.isoformat(),
    }


def _from_row(row: dict[str, object]) -> CalorieLog:
    return CalorieLog(
        id=str(row["id"]),
        user_id=int(row["telegram_user_id"]),
        food_items=list(row.get("food_items") or []),
        calories=int(row["calories"]),
        confidence=str(row["confidence"]),
        timestamp=datetime.fromisoformat(str(row["logged_at"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
    )

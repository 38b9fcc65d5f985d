"""Calorie log entries shared by the bot and the Mini App API."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from calories_bot.domain.estimates import Confidence

MAX_FOOD_ITEMS = 10
MAX_FOOD_ITEMS_TEXT = 1000


def _validate_food_items(items: list[str]) -> list[str]:
    if not items:
        raise ValueError("food items cannot be empty")
    if len(items) > MAX_FOOD_ITEMS:
        raise ValueError(f"food items cannot exceed {MAX_FOOD_ITEMS} items")
    total_length = 0
    for item in items:
        stripped = item.strip()
        if not stripped:
            raise ValueError("food items cannot contain empty strings")
        total_length += len(stripped)
    if total_length > MAX_FOOD_ITEMS_TEXT:
        raise ValueError(
            f"total food items text cannot exceed {MAX_FOOD_ITEMS_TEXT} characters"
        )
    return items


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CalorieLog(_CamelModel):
    """Stored calorie log entry."""

    id: str
    user_id: int
    food_items: list[str]
    calories: int = Field(ge=0)
    confidence: Confidence
    timestamp: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator("food_items")
    @classmethod
    def check_food_items(cls, value: list[str]) -> list[str]:
        return _validate_food_items(value)

    @field_validator("timestamp", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_json(self) -> dict[str, object]:
        """Serialize with the camelCase field names used by the Mini App."""
        return self.model_dump(mode="json", by_alias=True)


class LogCreate(_CamelModel):
    """Request body for creating a log entry."""

    food_items: list[str]
    calories: int = Field(ge=0)
    confidence: Confidence
    timestamp: datetime | None = None

    @field_validator("food_items")
    @classmethod
    def check_food_items(cls, value: list[str]) -> list[str]:
        return _validate_food_items(value)


class LogUpdate(_CamelModel):
    """Partial update for a log entry; omitted fields stay unchanged."""

    food_items: list[str] | None = None
    calories: int | None = None
    confidence: Confidence | None = None
    timestamp: datetime | None = None

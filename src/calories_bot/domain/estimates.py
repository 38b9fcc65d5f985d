"""Models for calorie estimation results."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

Confidence = Literal["low", "medium", "high"]


class EstimateResult(BaseModel):
    """Structured calorie estimate returned by the vision model."""

    calories: int = Field(ge=0)
    confidence: Confidence
    items: list[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("items", mode="before")
    @classmethod
    def default_items(cls, value: object) -> object:
        return [] if value is None else value

    def has_food(self) -> bool:
        """Return true when the model recognized at least one food."""
        return bool(self.items) and self.calories > 0

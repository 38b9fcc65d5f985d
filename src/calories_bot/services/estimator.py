"""Calorie estimation from food photos using a vision LLM."""

import asyncio
import base64
from dataclasses import dataclass
from typing import Protocol

from calories_bot.domain.estimates import EstimateResult

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories": {"type": "integer"},
        "confidence": {"type": "string", "enum": ["low", "medium", "high"]},
        "items": {"type": "array", "items": {"type": "string"}},
        "reasoning": {"type": "string"},
    },
    "required": ["calories", "confidence", "items", "reasoning"],
    "additionalProperties": False,
}

ESTIMATE_PROMPT = """You are a nutrition analysis assistant. \
Analyze this food image and estimate total calories.

Return JSON with calories (integer kcal), confidence, items and reasoning.

Confidence levels:
- high: Common foods, clear portions visible
- medium: Some foods recognizable, portions estimated
- low: Unclear foods or portions, or non-food image

If no food is detected, return calories 0, confidence "low", an empty items \
list and the reasoning "No food detected".

Example (grilled chicken with vegetables):
{"calories": 450, "confidence": "high", "items": ["Grilled chicken breast (200g)", \
"Steamed broccoli (100g)", "Brown rice (150g)"], \
"reasoning": "Standard portions for grilled chicken plate"}"""


class Estimator(Protocol):
    """Interface for turning an image into a calorie estimate."""

    async def estimate(self, image_bytes: bytes, mime_type: str) -> EstimateResult:
        """Return a validated calorie estimate for the image."""


class VisionClient(Protocol):
    """Interface for LLM vision extraction."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured vision extraction data."""


@dataclass
class VisionEstimator(Estimator):
    """Estimator that prompts a vision model and validates its answer."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool
    timeout_seconds: float = 30

    async def estimate(self, image_bytes: bytes, mime_type: str) -> EstimateResult:
        """Estimate calories for an image via the configured client."""
        raw = await asyncio.wait_for(
            self.client.extract(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=to_data_url(image_bytes, mime_type),
                schema=ESTIMATE_SCHEMA,
                prompt=ESTIMATE_PROMPT,
            ),
            timeout=self.timeout_seconds,
        )
        return EstimateResult.model_validate(raw)


def to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    resolved = mime_type or detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"

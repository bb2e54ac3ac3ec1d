"""Food recognition and nutrition estimation using hosted LLMs."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from food_recognition.domain.foods import FoodPrediction, NutritionEstimate, Portion
from food_recognition.errors import AppError, ErrorKind

PREDICTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "origin": {"type": "string"},
        "ingredients": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["name", "origin", "ingredients"],
    "additionalProperties": False,
}

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories": {"type": "number", "minimum": 0},
        "nutrients": {
            "type": "object",
            "properties": {
                "protein": {"type": "number", "minimum": 0},
                "carbs": {"type": "number", "minimum": 0},
                "fat": {"type": "number", "minimum": 0},
            },
            "required": ["protein", "carbs", "fat"],
            "additionalProperties": False,
        },
    },
    "required": ["calories", "nutrients"],
    "additionalProperties": False,
}

PREDICTION_PROMPT = (
    "Analyze this African food image and return ONLY: "
    "1. Common local name "
    "2. Regional origin (West/East/North/South/Central Africa) "
    "3. List of ingredients. "
    "Return JSON format: {name:string, origin:string, ingredients:string[]}"
)

_logger = logging.getLogger(__name__)


class ModelNotConfiguredError(RuntimeError):
    """Raised when the model provider has no API key."""


class ModelClient(Protocol):
    """Interface for a hosted generative model returning JSON."""

    async def generate(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return the model's JSON output parsed into a dict."""


@dataclass
class RecognitionService:
    """Turns images and ingredient lists into typed predictions."""

    client: ModelClient

    async def predict_food(self, image_bytes: bytes) -> FoodPrediction:
        """Predict name, regional origin and ingredients from an image."""
        try:
            raw = await self.client.generate(
                prompt=PREDICTION_PROMPT,
                schema=PREDICTION_SCHEMA,
                schema_name="food_prediction",
                image_data_url=to_data_url(image_bytes),
            )
            return FoodPrediction.model_validate(raw)
        except Exception as exc:
            _logger.exception("AI prediction failed")
            raise AppError(ErrorKind.PREDICTION_FAILED) from exc

    async def estimate_nutrition(
        self,
        food_name: str,
        ingredients: list[str],
        region: str,
        portion: Portion,
    ) -> NutritionEstimate:
        """Estimate calories and macronutrients for a confirmed dish."""
        unit = f" {portion.unit}" if portion.unit else ""
        prompt = (
            f"Calculate nutrition for {food_name}, a {region} African dish "
            f"with these ingredients: {', '.join(ingredients)}. "
            f"Portion: {portion.value:g}{unit} ({portion.type}). "
            "Return ONLY JSON: {calories: number, "
            "nutrients: {protein: number, carbs: number, fat: number}}"
        )
        try:
            raw = await self.client.generate(
                prompt=prompt,
                schema=NUTRITION_SCHEMA,
                schema_name="nutrition_estimate",
            )
            return NutritionEstimate.model_validate(raw)
        except Exception as exc:
            _logger.exception("Nutrition calculation failed")
            raise AppError(ErrorKind.NUTRITION_FAILED) from exc


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"

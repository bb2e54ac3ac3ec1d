"""Nutrition calculation for confirmed dishes."""

from dataclasses import dataclass

from food_recognition.services.fingerprint import (
    NUTRITION_NAMESPACE,
    cache_key,
    request_fingerprint,
)
from food_recognition.services.recognition import RecognitionService
from food_recognition.services.response_cache import CachedResult, ResponseCache
from food_recognition.services.validation import (
    sanitize_text,
    validate_food_name,
    validate_ingredients,
    validate_portion,
    validate_region,
)

NUTRITION_TTL_SECONDS = 86400
NUTRITION_PATH = "/api/v1/nutrition"


@dataclass
class NutritionService:
    """Service for cached nutrition estimates."""

    recognition: RecognitionService
    response_cache: ResponseCache
    ttl_seconds: int = NUTRITION_TTL_SECONDS

    async def calculate(
        self,
        ingredients: object,
        food_name: object,
        region: object,
        portion: object,
    ) -> CachedResult:
        """Validate the request and return its (possibly cached) breakdown."""
        items = [sanitize_text(item) for item in validate_ingredients(ingredients)]
        name = sanitize_text(validate_food_name(food_name))
        regional_origin = validate_region(region)
        validated_portion = validate_portion(portion)

        body = {
            "ingredients": items,
            "foodName": name,
            "regionalOrigin": regional_origin,
            "portion": validated_portion.as_dict(),
        }
        key = cache_key(
            NUTRITION_NAMESPACE,
            request_fingerprint("POST", NUTRITION_PATH, body, {}),
        )

        async def compute() -> dict[str, object]:
            estimate = await self.recognition.estimate_nutrition(
                name, items, regional_origin, validated_portion
            )
            return {**body, **estimate.model_dump()}

        return await self.response_cache.get_or_compute(
            key, compute, ttl_seconds=self.ttl_seconds
        )

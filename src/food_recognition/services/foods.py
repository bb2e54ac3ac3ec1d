"""Food image analysis and the per-user food catalogue."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from food_recognition.domain.foods import FoodRecord
from food_recognition.errors import AppError, ErrorKind
from food_recognition.services.fingerprint import (
    CONFIRMED_NAMESPACE,
    FOOD_NAMESPACE,
    cache_key,
    content_fingerprint,
    identity_for,
)
from food_recognition.services.recognition import RecognitionService
from food_recognition.services.response_cache import CachedResult, ResponseCache
from food_recognition.services.validation import (
    sanitize_text,
    validate_calories,
    validate_food_name,
    validate_image_file,
    validate_ingredients,
    validate_region,
)

ANALYSIS_TTL_SECONDS = 3600
FOOD_DETAIL_TTL_SECONDS = 3600
CONFIRMED_TTL_SECONDS = 86400
RETRY_PLACEHOLDER: dict[str, object] = {
    "retry": True,
    "message": "Image analysis is temporarily unavailable. Please retry shortly.",
}

_logger = logging.getLogger(__name__)


class FoodRepository(Protocol):
    """Persistence interface for user foods."""

    def upsert_food(  # noqa: PLR0913
        self,
        user_id: int,
        name: str,
        ingredients: list[str],
        calories: float | None,
        image_path: str | None,
        accessed_at: datetime,
    ) -> FoodRecord:
        """Create the food or bump its frequency when the name already exists."""

    def get_food(self, user_id: int, food_id: int) -> FoodRecord | None:
        """Return one of the user's foods, if present."""

    def list_frequent_foods(self, user_id: int, limit: int) -> list[FoodRecord]:
        """Return the user's foods ordered by frequency then recency."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FoodService:
    """Service for food recognition and confirmed foods.

    Repository calls are blocking and run in worker threads.
    """

    repository: FoodRepository
    recognition: RecognitionService
    response_cache: ResponseCache
    allowed_image_types: frozenset[str]
    max_upload_bytes: int
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def analyze_image(
        self, user_id: int | None, content_type: str | None, image: bytes | None
    ) -> CachedResult:
        """Predict food details for an image, cached per user and content."""
        validate_image_file(
            content_type,
            len(image) if image is not None else None,
            self.allowed_image_types,
            self.max_upload_bytes,
        )
        key = cache_key(
            FOOD_NAMESPACE, identity_for(user_id), content_fingerprint(image)
        )

        async def compute() -> dict[str, object]:
            prediction = await self.recognition.predict_food(image)
            return {
                "foodName": sanitize_text(prediction.name),
                "regionalOrigin": sanitize_text(prediction.origin),
                "ingredients": [
                    sanitize_text(item) for item in prediction.ingredients
                ],
            }

        result = await self.response_cache.get_or_compute(
            key,
            compute,
            ttl_seconds=ANALYSIS_TTL_SECONDS,
            failure_value=RETRY_PLACEHOLDER,
        )
        if _is_retry_placeholder(result.value):
            _logger.info("Serving retry placeholder", extra={"cache_key": key})
            raise AppError(ErrorKind.PREDICTION_FAILED, details={"retry": True})
        return result

    async def confirm_food(  # noqa: PLR0913
        self,
        user_id: int,
        name: object,
        region: object,
        ingredients: object,
        calories: object = None,
        image_path: object = None,
    ) -> dict[str, object]:
        """Persist a confirmed food, counting repeat confirmations."""
        food_name = sanitize_text(validate_food_name(name))
        regional_origin = validate_region(region)
        items = [sanitize_text(item) for item in validate_ingredients(ingredients)]
        kcal = validate_calories(calories)
        if image_path is not None and not isinstance(image_path, str):
            raise AppError.bad_request("imagePath must be a string")

        record = await asyncio.to_thread(
            self.repository.upsert_food,
            user_id,
            food_name,
            items,
            kcal,
            image_path,
            accessed_at=self.clock(),
        )
        payload = {**record.as_dict(), "regionalOrigin": regional_origin}
        cache = self.response_cache.cache
        await cache.set(
            cache_key(
                CONFIRMED_NAMESPACE,
                user_id,
                content_fingerprint(food_name.lower().encode("utf-8")),
            ),
            payload,
            ttl_seconds=CONFIRMED_TTL_SECONDS,
        )
        await cache.delete(_food_detail_key(user_id, record.id))
        return payload

    async def get_food(self, user_id: int, food_id: int) -> CachedResult:
        """Return one of the user's foods."""

        async def compute() -> dict[str, object]:
            record = await asyncio.to_thread(
                self.repository.get_food, user_id, food_id
            )
            if record is None:
                raise AppError.not_found("Food")
            return record.as_dict()

        return await self.response_cache.get_or_compute(
            _food_detail_key(user_id, food_id),
            compute,
            ttl_seconds=FOOD_DETAIL_TTL_SECONDS,
        )

    async def frequent_foods(
        self, user_id: int, limit: int = 10
    ) -> list[dict[str, object]]:
        """Return the foods a user confirms most often."""
        records = await asyncio.to_thread(
            self.repository.list_frequent_foods, user_id, limit
        )
        return [record.as_dict() for record in records]


def _food_detail_key(user_id: int, food_id: int) -> str:
    return cache_key(FOOD_NAMESPACE, user_id, "item", food_id)


def _is_retry_placeholder(value: object) -> bool:
    return isinstance(value, dict) and value.get("retry") is True

"""Domain models for foods, predictions and meal logs."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field


class FoodPrediction(BaseModel):
    """Structured output of image recognition."""

    name: str = Field(min_length=1)
    origin: str
    ingredients: list[str]


class Nutrients(BaseModel):
    """Macronutrients in grams."""

    protein: float = Field(ge=0.0, allow_inf_nan=False)
    carbs: float = Field(ge=0.0, allow_inf_nan=False)
    fat: float = Field(ge=0.0, allow_inf_nan=False)


class NutritionEstimate(BaseModel):
    """Structured output of a nutrition estimate."""

    calories: float = Field(ge=0.0, allow_inf_nan=False)
    nutrients: Nutrients


@dataclass(frozen=True)
class Portion:
    """Validated portion description."""

    type: str
    value: float
    unit: str | None = None

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"type": self.type, "value": self.value}
        if self.unit is not None:
            payload["unit"] = self.unit
        return payload


@dataclass(frozen=True)
class FoodRecord:
    """A food scanned and confirmed by a user."""

    id: int
    user_id: int
    name: str
    ingredients: list[str]
    calories: float | None
    image_path: str | None
    frequency_count: int
    last_accessed: datetime | None

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "ingredients": list(self.ingredients),
            "calories": self.calories,
            "imagePath": self.image_path,
            "frequencyCount": self.frequency_count,
            "lastAccessed": (
                self.last_accessed.isoformat() if self.last_accessed else None
            ),
        }


@dataclass(frozen=True)
class MealLogEntry:
    """A meal the user logged against one of their foods."""

    id: int
    user_id: int
    food_id: int
    consumed_at: datetime
    notes: str | None

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "foodId": self.food_id,
            "consumedAt": self.consumed_at.isoformat(),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class HistoryEntry:
    """Meal log row joined with its food."""

    id: int
    consumed_at: datetime
    notes: str | None
    food_id: int
    name: str
    ingredients: list[str]
    calories: float | None

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "consumedAt": self.consumed_at.isoformat(),
            "notes": self.notes,
            "foodId": self.food_id,
            "name": self.name,
            "ingredients": list(self.ingredients),
            "calories": self.calories,
        }

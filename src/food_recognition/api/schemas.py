"""Request bodies and the success envelope.

Bodies accept loosely typed fields; the services own field validation so
every malformed value yields the same descriptive 400.
"""

from datetime import datetime
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_Body):
    first_name: Any = Field(default=None, alias="firstName")
    last_name: Any = Field(default=None, alias="lastName")
    email: Any = None
    password: Any = None


class LoginRequest(_Body):
    email: Any = None
    password: Any = None


class EmailRequest(_Body):
    email: Any = None


class ResetPasswordRequest(_Body):
    new_password: Any = Field(default=None, alias="newPassword")


class ConfirmFoodRequest(_Body):
    name: Any = None
    regional_origin: Any = Field(default=None, alias="regionalOrigin")
    ingredients: Any = None
    calories: Any = None
    image_path: Any = Field(default=None, alias="imagePath")


class NutritionRequest(_Body):
    ingredients: Any = None
    food_name: Any = Field(default=None, alias="foodName")
    regional_origin: Any = Field(default=None, alias="regionalOrigin")
    portion: Any = None


class MealLogRequest(_Body):
    food_id: Any = Field(default=None, alias="foodId")
    consumed_at: datetime | None = Field(default=None, alias="consumedAt")
    notes: Any = None


def success(
    message: str,
    data: object = None,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the `{status, message, data}` success envelope."""
    body: dict[str, object] = {"status": "success", "message": message}
    if data is not None:
        body["data"] = data
    return JSONResponse(body, status_code=status_code, headers=headers)


def cache_header(hit: bool) -> dict[str, str]:
    return {"X-Cache": "HIT" if hit else "MISS"}

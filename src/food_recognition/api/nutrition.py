"""Nutrition calculation and meal logging endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from food_recognition.api.dependencies import (
    get_container,
    rate_limit,
    require_user_id,
)
from food_recognition.api.schemas import (
    MealLogRequest,
    NutritionRequest,
    cache_header,
    success,
)

router = APIRouter(
    prefix="/api/v1/nutrition",
    tags=["nutrition"],
    dependencies=[Depends(rate_limit("api"))],
)


@router.post("")
async def calculate_nutrition(body: NutritionRequest, request: Request) -> JSONResponse:
    """Estimate calories and macronutrients for a confirmed dish."""
    result = await get_container(request).nutrition_service.calculate(
        body.ingredients, body.food_name, body.regional_origin, body.portion
    )
    return success(
        "Nutrition calculated successfully",
        result.value,
        headers=cache_header(result.hit),
    )


@router.post("/log")
async def log_meal(
    body: MealLogRequest,
    request: Request,
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    entry = await get_container(request).meal_log_service.log_meal(
        user_id, body.food_id, consumed_at=body.consumed_at, notes=body.notes
    )
    return success("Meal logged successfully", entry.as_dict(), status_code=201)


@router.delete("/log/{entry_id}")
async def delete_meal(
    entry_id: int,
    request: Request,
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    await get_container(request).meal_log_service.delete_entry(user_id, entry_id)
    return success("Meal log entry deleted successfully")

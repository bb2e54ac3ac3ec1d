"""Food recognition and history endpoints."""

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from food_recognition.api.dependencies import (
    get_container,
    optional_user_id,
    rate_limit,
    require_user_id,
)
from food_recognition.api.schemas import ConfirmFoodRequest, cache_header, success

router = APIRouter(
    prefix="/api/v1/foods",
    tags=["foods"],
    dependencies=[Depends(rate_limit("api"))],
)


@router.post("/analyze")
async def analyze_food_image(
    request: Request,
    image: UploadFile | None = File(default=None),
    user_id: int | None = Depends(optional_user_id),
) -> JSONResponse:
    """Predict the dish in an uploaded image."""
    content_type = image.content_type if image is not None else None
    data = await image.read() if image is not None else None
    result = await get_container(request).food_service.analyze_image(
        user_id, content_type, data
    )
    return success(
        "Food analyzed successfully", result.value, headers=cache_header(result.hit)
    )


@router.post("/confirm")
async def confirm_food(
    body: ConfirmFoodRequest,
    request: Request,
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    """Save a prediction the user confirmed."""
    food = await get_container(request).food_service.confirm_food(
        user_id,
        body.name,
        body.regional_origin,
        body.ingredients,
        calories=body.calories,
        image_path=body.image_path,
    )
    return success("Food confirmed successfully", food, status_code=201)


@router.get("")
async def food_history(
    request: Request,
    page: int = Query(default=1),
    limit: int = Query(default=10),
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    """Return the user's meal history, newest first."""
    history = await get_container(request).meal_log_service.history(
        user_id, page, limit
    )
    return success("Food history retrieved successfully", history)


@router.get("/frequent")
async def frequent_foods(
    request: Request,
    limit: int = Query(default=10, ge=1, le=50),
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    foods = await get_container(request).food_service.frequent_foods(user_id, limit)
    return success("Frequent foods retrieved successfully", foods)


@router.get("/{food_id}")
async def get_food(
    food_id: int,
    request: Request,
    user_id: int = Depends(require_user_id),
) -> JSONResponse:
    result = await get_container(request).food_service.get_food(user_id, food_id)
    return success(
        "Food retrieved successfully", result.value, headers=cache_header(result.hit)
    )

"""Reference data and service status endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from food_recognition.api.dependencies import get_container
from food_recognition.api.schemas import success
from food_recognition.domain.regions import region_list

router = APIRouter(prefix="/api/v1/utils", tags=["utils"])


@router.get("/regions")
async def regions() -> JSONResponse:
    return success("Regions retrieved successfully", region_list())


@router.get("/status")
async def service_status(request: Request) -> JSONResponse:
    """Report the health of the API and its backing services."""
    report = await get_container(request).status_service.status()
    return success("Service status retrieved successfully", report)

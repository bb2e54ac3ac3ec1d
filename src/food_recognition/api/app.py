"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from food_recognition.api.auth import router as auth_router
from food_recognition.api.errors import register_exception_handlers
from food_recognition.api.foods import router as foods_router
from food_recognition.api.nutrition import router as nutrition_router
from food_recognition.api.utils import router as utils_router
from food_recognition.app_logging import configure_logging
from food_recognition.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        report = await app.state.container.status_service.status()
        if report["overall"] != "healthy":
            logger.warning("Starting with degraded services: %s", report["services"])
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Cache", "Retry-After"],
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s %s %.1fms",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
            )

    register_exception_handlers(app, expose_debug=settings.environment == "local")

    app.include_router(auth_router)
    app.include_router(foods_router)
    app.include_router(nutrition_router)
    app.include_router(utils_router)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    return app

"""Centralized exception handlers rendering the error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from food_recognition.errors import AppError, ErrorKind

_logger = logging.getLogger(__name__)


def error_body(error: AppError) -> dict[str, object]:
    body: dict[str, object] = {
        "status": error.status,
        "code": error.kind.code,
        "message": error.message,
    }
    if error.details:
        body["details"] = error.details
    return body


def _render(error: AppError) -> JSONResponse:
    return JSONResponse(
        error_body(error),
        status_code=error.status_code,
        headers=error.headers or None,
    )


def register_exception_handlers(app: FastAPI, *, expose_debug: bool) -> None:
    """Map every error that reaches the app to the JSON envelope.

    Unexpected exceptions are logged in full; their detail reaches the
    client only when expose_debug is set.
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            _logger.error(
                "Request failed",
                extra={"path": request.url.path, "code": exc.kind.code},
                exc_info=exc.__cause__ or exc,
            )
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": str(error.get("msg", "")),
            }
            for error in exc.errors()
        ]
        return _render(AppError.bad_request("Invalid request", {"errors": errors}))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            return _render(
                AppError(
                    ErrorKind.NOT_FOUND,
                    f"Can't find {request.url.path} on this server!",
                )
            )
        return JSONResponse(
            {
                "status": "fail" if exc.status_code < 500 else "error",
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
            },
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        _logger.exception("Unhandled error", extra={"path": request.url.path})
        error = AppError.internal()
        if expose_debug:
            error.details = {"error": repr(exc)}
        return _render(error)

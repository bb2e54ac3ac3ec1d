"""Account endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from food_recognition.api.dependencies import get_container, rate_limit
from food_recognition.api.schemas import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    success,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

auth_limit = Depends(rate_limit("auth"))
password_reset_limit = Depends(rate_limit("passwordReset"))


@router.post("/register", dependencies=[auth_limit])
async def register(body: RegisterRequest, request: Request) -> JSONResponse:
    """Create an account and return a bearer token."""
    session = await get_container(request).auth_service.register(
        body.first_name, body.last_name, body.email, body.password
    )
    return success(
        "User registered successfully",
        {"token": session.token, "userId": session.user_id},
        status_code=201,
    )


@router.post("/login", dependencies=[auth_limit])
async def login(body: LoginRequest, request: Request) -> JSONResponse:
    """Exchange credentials for a bearer token."""
    session = await get_container(request).auth_service.login(
        body.email, body.password
    )
    return success(
        "Login successful",
        {
            "token": session.token,
            "userId": session.user_id,
            "expiresIn": session.expires_in_ms,
        },
    )


@router.get("/logout")
async def logout() -> JSONResponse:
    """Acknowledge logout; tokens are stateless and expire on their own."""
    return success("Logged out successfully")


@router.post("/forgot-password", dependencies=[password_reset_limit])
async def forgot_password(body: EmailRequest, request: Request) -> JSONResponse:
    message = await get_container(request).auth_service.request_password_reset(
        body.email
    )
    return success(message)


@router.patch("/reset-password/{token}", dependencies=[password_reset_limit])
async def reset_password(
    token: str, body: ResetPasswordRequest, request: Request
) -> JSONResponse:
    await get_container(request).auth_service.reset_password(
        token, body.new_password
    )
    return success("Password has been reset successfully")


@router.get("/verify-email/{token}")
async def verify_email(token: str, request: Request) -> JSONResponse:
    await get_container(request).auth_service.verify_email(token)
    return success("Email verified successfully")


@router.post("/resend-verification", dependencies=[auth_limit])
async def resend_verification(body: EmailRequest, request: Request) -> JSONResponse:
    message = await get_container(request).auth_service.resend_verification(
        body.email
    )
    return success(message)

"""Request dependencies: container access, bearer auth and rate limits."""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, Request

from food_recognition.containers import AppContainer
from food_recognition.errors import AppError

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def get_container(request: Request) -> AppContainer:
    container: AppContainer = request.app.state.container
    return container


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def optional_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
) -> int | None:
    """Return the caller's user id when a valid bearer token is present."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        user_id = get_container(request).token_service.decode_access_token(token)
    except AppError:
        return None
    request.state.user_id = user_id
    return user_id


async def require_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
) -> int:
    """Reject requests without a valid bearer token."""
    token = _bearer_token(authorization)
    if token is None:
        raise AppError.unauthorized(INVALID_TOKEN_MESSAGE)
    user_id = get_container(request).token_service.decode_access_token(token)
    request.state.user_id = user_id
    return user_id


def rate_limit(policy_name: str) -> Callable[..., Awaitable[None]]:
    """Build a dependency that spends one point of the named policy."""

    async def dependency(
        request: Request,
        user_id: int | None = Depends(optional_user_id),
    ) -> None:
        limiter = get_container(request).rate_limiters[policy_name]
        identity = str(user_id) if user_id is not None else _client_ip(request)
        await limiter.consume(identity, _route_path(request))

    return dependency


def _client_ip(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return request.client.host


def _route_path(request: Request) -> str:
    # Templated path so /reset-password/{token} shares one counter.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)

"""Signed bearer and password-reset tokens."""

import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt

from food_recognition.errors import AppError

JWT_ALGORITHM = "HS256"
RESET_SCOPE = "password_reset"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TokenService:
    """Issue and verify HS256 tokens."""

    secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    reset_ttl: timedelta = timedelta(minutes=15)
    clock: Callable[[], datetime] = field(default=_utcnow)

    @property
    def access_ttl_ms(self) -> int:
        return int(self.access_ttl.total_seconds() * 1000)

    def issue_access_token(self, user_id: int) -> str:
        """Sign a short-lived token whose only custom claim is the user id."""
        now = self.clock()
        payload = {"userId": user_id, "iat": now, "exp": now + self.access_ttl}
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def decode_access_token(self, token: str) -> int:
        """Return the user id for a valid access token."""
        claims = self._decode(token)
        user_id = claims.get("userId")
        if "scope" in claims or not isinstance(user_id, int):
            raise AppError.unauthorized("Invalid or expired token")
        return user_id

    def issue_reset_token(self, email: str) -> tuple[str, datetime]:
        """Sign a password-reset token and return it with its expiry."""
        now = self.clock()
        expires_at = now + self.reset_ttl
        payload = {
            "email": email,
            "scope": RESET_SCOPE,
            "jti": secrets.token_hex(8),
            "iat": now,
            "exp": expires_at,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM), expires_at

    def verify_reset_token(self, token: str) -> str | None:
        """Return the email of a valid reset token, or None."""
        try:
            claims = self._decode(token)
        except AppError:
            return None
        email = claims.get("email")
        if claims.get("scope") != RESET_SCOPE or not isinstance(email, str):
            return None
        return email

    def _decode(self, token: str) -> dict[str, object]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            raise AppError.unauthorized("Invalid or expired token") from exc


def new_opaque_token() -> str:
    """Return a random URL-safe token for email verification links."""
    return secrets.token_urlsafe(32)

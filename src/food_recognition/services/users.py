"""Account registration, login, verification and password reset."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from food_recognition.domain.users import AuthSession, NewUser, UserRecord
from food_recognition.errors import AppError
from food_recognition.services.email import (
    RESET_EMAIL,
    VERIFICATION_EMAIL,
    EmailService,
    EmailThrottledError,
)
from food_recognition.services.passwords import (
    hash_password_async,
    verify_password_async,
)
from food_recognition.services.tokens import TokenService, new_opaque_token
from food_recognition.services.validation import (
    validate_email,
    validate_password,
    validate_registration,
)

RESET_REQUESTED_MESSAGE = (
    "If an account exists for that email, a reset link has been sent"
)
VERIFICATION_REQUESTED_MESSAGE = (
    "If an unverified account exists for that email, a verification link has been sent"
)

_logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user accounts."""

    def create_user(self, user: NewUser) -> int:
        """Insert a user and return its id; raise CONFLICT on duplicate email."""

    def get_by_id(self, user_id: int) -> UserRecord | None:
        """Return a user by id, if present."""

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return a user by email, if present."""

    def set_reset_token(self, email: str, token: str, expiry: datetime) -> None:
        """Persist the server-side copy of a reset token."""

    def get_by_reset_token(self, token: str) -> UserRecord | None:
        """Return the user holding a reset token, regardless of expiry."""

    def clear_reset_token(self, user_id: int) -> None:
        """Remove the stored reset token."""

    def update_password(self, user_id: int, password_hash: str) -> None:
        """Store a new password hash and clear any reset token."""

    def set_verification_token(
        self, email: str, token: str, expiry: datetime
    ) -> None:
        """Persist an email-verification token."""

    def get_by_verification_token(self, token: str) -> UserRecord | None:
        """Return the user holding a verification token, regardless of expiry."""

    def mark_verified(self, user_id: int) -> None:
        """Flag the user as verified and clear the verification token."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AuthService:
    """Application service for the account lifecycle.

    Repository calls are blocking and run in worker threads.
    """

    repository: UserRepository
    tokens: TokenService
    email_service: EmailService
    verification_ttl: timedelta = timedelta(minutes=15)
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def register(
        self, first_name: object, last_name: object, email: object, password: object
    ) -> AuthSession:
        """Create an account and return a bearer token for it."""
        first, last, normalized_email, plain = validate_registration(
            first_name, last_name, email, password
        )
        existing = await asyncio.to_thread(
            self.repository.get_by_email, normalized_email
        )
        if existing is not None:
            raise AppError.conflict("An account with this email already exists")

        new_user = NewUser(
            first_name=first,
            last_name=last,
            email=normalized_email,
            password_hash=await hash_password_async(plain),
        )
        user_id = await asyncio.to_thread(self.repository.create_user, new_user)
        _logger.info("User registered", extra={"user_id": user_id})
        await self._send_verification(normalized_email)
        return self._session(user_id)

    async def login(self, email: object, password: object) -> AuthSession:
        """Verify credentials and issue a bearer token."""
        if not isinstance(email, str) or not isinstance(password, str):
            raise AppError.unauthorized("Invalid email or password")
        user = await asyncio.to_thread(
            self.repository.get_by_email, email.strip().lower()
        )
        if user is None:
            raise AppError.unauthorized("Invalid email or password")
        if not await verify_password_async(password, user.password_hash):
            raise AppError.unauthorized("Invalid email or password")
        return self._session(user.id)

    async def request_password_reset(self, email: object) -> str:
        """Issue a reset token when the account exists; the reply never says.

        Inside the resend window the stored token is left alone so the link
        already delivered keeps working.
        """
        normalized = validate_email(email)
        user = await asyncio.to_thread(self.repository.get_by_email, normalized)
        if user is None:
            return RESET_REQUESTED_MESSAGE
        if await self.email_service.is_throttled(user.email, RESET_EMAIL):
            _logger.info("Reset email throttled", extra={"user_id": user.id})
            return RESET_REQUESTED_MESSAGE

        token, expires_at = self.tokens.issue_reset_token(user.email)
        await asyncio.to_thread(
            self.repository.set_reset_token, user.email, token, expires_at
        )
        try:
            await self.email_service.send_password_reset(user.email, token)
        except EmailThrottledError:
            _logger.info("Reset email throttled", extra={"user_id": user.id})
        except Exception:
            _logger.exception("Reset email delivery failed", extra={"user_id": user.id})
        return RESET_REQUESTED_MESSAGE

    async def reset_password(self, token: str, new_password: object) -> None:
        """Set a new password when the reset token is valid and unused.

        The token must verify, match the stored copy and not be past its
        stored expiry; it is cleared on use so it cannot be replayed.
        """
        plain = validate_password(new_password, "newPassword")
        email = self.tokens.verify_reset_token(token)
        user = await asyncio.to_thread(self.repository.get_by_reset_token, token)
        if (
            email is None
            or user is None
            or user.email != email
            or user.reset_token_expiry is None
            or user.reset_token_expiry <= self.clock()
        ):
            raise AppError.bad_request("Invalid or expired token")

        password_hash = await hash_password_async(plain)
        await asyncio.to_thread(self._store_password, user.id, password_hash)
        _logger.info("Password reset", extra={"user_id": user.id})

    async def verify_email(self, token: str) -> None:
        """Mark the account holding a live verification token as verified."""
        user = await asyncio.to_thread(
            self.repository.get_by_verification_token, token
        )
        if (
            user is None
            or user.verification_token_expiry is None
            or user.verification_token_expiry <= self.clock()
        ):
            raise AppError.bad_request("Invalid or expired verification token")
        await asyncio.to_thread(self.repository.mark_verified, user.id)

    async def resend_verification(self, email: object) -> str:
        """Re-send the verification email for unverified accounts."""
        normalized = validate_email(email)
        user = await asyncio.to_thread(self.repository.get_by_email, normalized)
        if user is not None and not user.is_verified:
            await self._send_verification(user.email)
        return VERIFICATION_REQUESTED_MESSAGE

    async def _send_verification(self, email: str) -> None:
        if await self.email_service.is_throttled(email, VERIFICATION_EMAIL):
            _logger.info("Verification email throttled")
            return
        token = new_opaque_token()
        await asyncio.to_thread(
            self.repository.set_verification_token,
            email,
            token,
            self.clock() + self.verification_ttl,
        )
        try:
            await self.email_service.send_verification(email, token)
        except EmailThrottledError:
            _logger.info("Verification email throttled")
        except Exception:
            _logger.exception("Verification email delivery failed")

    def _store_password(self, user_id: int, password_hash: str) -> None:
        self.repository.update_password(user_id, password_hash)
        self.repository.clear_reset_token(user_id)

    def _session(self, user_id: int) -> AuthSession:
        return AuthSession(
            token=self.tokens.issue_access_token(user_id),
            user_id=user_id,
            expires_in_ms=self.tokens.access_ttl_ms,
        )

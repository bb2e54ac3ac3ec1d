"""Transactional email composition and throttling."""

import logging
from dataclasses import dataclass
from typing import Protocol

from food_recognition.services.cache import Cache

EMAIL_THROTTLE_SECONDS = 60
RESET_EMAIL = "reset"
VERIFICATION_EMAIL = "verify"

_logger = logging.getLogger(__name__)


class EmailThrottledError(Exception):
    """Raised when a recipient was emailed too recently."""


class EmailSender(Protocol):
    """Interface for outbound email delivery."""

    async def send(self, *, to: str, subject: str, text: str) -> None:
        """Deliver a plain-text email."""


@dataclass
class EmailService:
    """Builds account emails and limits them to one per recipient per minute."""

    sender: EmailSender
    cache: Cache
    frontend_url: str
    support_email: str | None = None
    link_ttl_minutes: int = 15

    async def send_password_reset(self, email: str, token: str) -> None:
        """Send the password-reset link."""
        link = f"{self.frontend_url.rstrip('/')}/reset-password?token={token}"
        await self._send(
            email,
            kind=RESET_EMAIL,
            subject="Password Reset Request",
            text=self._body(f"To reset your password, visit: {link}"),
        )

    async def send_verification(self, email: str, token: str) -> None:
        """Send the email-verification link."""
        link = f"{self.frontend_url.rstrip('/')}/verify-email?token={token}"
        await self._send(
            email,
            kind=VERIFICATION_EMAIL,
            subject="Verify your email address",
            text=self._body(f"To verify your email address, visit: {link}"),
        )

    async def is_throttled(self, email: str, kind: str) -> bool:
        """Return true while a recipient is inside the resend window for kind."""
        return await self.cache.get(_throttle_key(email, kind)) is not None

    async def _send(self, email: str, *, kind: str, subject: str, text: str) -> None:
        throttle_key = _throttle_key(email, kind)
        if await self.cache.get(throttle_key) is not None:
            _logger.warning("Email throttled", extra={"kind": kind})
            raise EmailThrottledError(
                "Emails can only be requested once per minute"
            )
        await self.sender.send(to=email, subject=subject, text=text)
        await self.cache.set(throttle_key, True, ttl_seconds=EMAIL_THROTTLE_SECONDS)
        _logger.info("Email sent", extra={"kind": kind})

    def _body(self, action_line: str) -> str:
        lines = [
            action_line,
            "",
            f"This link expires in {self.link_ttl_minutes} minutes.",
        ]
        if self.support_email:
            lines.append(f"Need help? Contact {self.support_email}")
        return "\n".join(lines)


def _throttle_key(email: str, kind: str) -> str:
    return f"email:{kind}:{email}"

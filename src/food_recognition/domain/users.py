"""Domain models for user accounts."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: int
    first_name: str
    last_name: str
    email: str
    password_hash: str
    is_verified: bool = False
    reset_token: str | None = None
    reset_token_expiry: datetime | None = None
    verification_token: str | None = None
    verification_token_expiry: datetime | None = None


@dataclass(frozen=True)
class NewUser:
    """Fields required to insert a user row."""

    first_name: str
    last_name: str
    email: str
    password_hash: str


@dataclass(frozen=True)
class AuthSession:
    """Bearer token issued after registration or login."""

    token: str
    user_id: int
    expires_in_ms: int

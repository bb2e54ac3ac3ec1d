"""MySQL-backed user repository."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, text
from sqlalchemy.exc import IntegrityError

from food_recognition.adapters.mysql import (
    from_db_datetime,
    to_db_datetime,
    transaction,
)
from food_recognition.domain.users import NewUser, UserRecord
from food_recognition.errors import AppError
from food_recognition.services.users import UserRepository

_USER_COLUMNS = (
    "id, first_name, last_name, email, password, is_verified, reset_token, "
    "reset_token_expiry, verification_token, verification_token_expiry"
)


@dataclass
class MySQLUserRepository(UserRepository):
    """MySQL implementation for user persistence."""

    engine: Engine

    def create_user(self, user: NewUser) -> int:
        """Insert a user row and return its id."""
        try:
            with transaction(self.engine) as connection:
                result = connection.execute(
                    text(
                        "INSERT INTO users "
                        "(first_name, last_name, email, password, is_verified) "
                        "VALUES (:first_name, :last_name, :email, :password, :verified)"
                    ),
                    {
                        "first_name": user.first_name,
                        "last_name": user.last_name,
                        "email": user.email,
                        "password": user.password_hash,
                        "verified": False,
                    },
                )
        except IntegrityError as exc:
            raise AppError.conflict(
                "An account with this email already exists"
            ) from exc
        if result.lastrowid is None:
            raise RuntimeError("Failed to create user")
        return int(result.lastrowid)

    def get_by_id(self, user_id: int) -> UserRecord | None:
        return self._fetch_one("id = :value", user_id)

    def get_by_email(self, email: str) -> UserRecord | None:
        return self._fetch_one("email = :value", email)

    def get_by_reset_token(self, token: str) -> UserRecord | None:
        return self._fetch_one("reset_token = :value", token)

    def get_by_verification_token(self, token: str) -> UserRecord | None:
        return self._fetch_one("verification_token = :value", token)

    def set_reset_token(self, email: str, token: str, expiry: datetime) -> None:
        """Persist the server-side copy of a reset token."""
        with transaction(self.engine) as connection:
            connection.execute(
                text(
                    "UPDATE users SET reset_token = :token, "
                    "reset_token_expiry = :expiry WHERE email = :email"
                ),
                {"token": token, "expiry": to_db_datetime(expiry), "email": email},
            )

    def clear_reset_token(self, user_id: int) -> None:
        with transaction(self.engine) as connection:
            connection.execute(
                text(
                    "UPDATE users SET reset_token = NULL, reset_token_expiry = NULL "
                    "WHERE id = :id"
                ),
                {"id": user_id},
            )

    def update_password(self, user_id: int, password_hash: str) -> None:
        """Store a new password hash and clear any reset token."""
        with transaction(self.engine) as connection:
            connection.execute(
                text(
                    "UPDATE users SET password = :password, reset_token = NULL, "
                    "reset_token_expiry = NULL WHERE id = :id"
                ),
                {"password": password_hash, "id": user_id},
            )

    def set_verification_token(
        self, email: str, token: str, expiry: datetime
    ) -> None:
        with transaction(self.engine) as connection:
            connection.execute(
                text(
                    "UPDATE users SET verification_token = :token, "
                    "verification_token_expiry = :expiry WHERE email = :email"
                ),
                {"token": token, "expiry": to_db_datetime(expiry), "email": email},
            )

    def mark_verified(self, user_id: int) -> None:
        with transaction(self.engine) as connection:
            connection.execute(
                text(
                    "UPDATE users SET is_verified = :verified, "
                    "verification_token = NULL, verification_token_expiry = NULL "
                    "WHERE id = :id"
                ),
                {"verified": True, "id": user_id},
            )

    def _fetch_one(self, condition: str, value: object) -> UserRecord | None:
        with transaction(self.engine) as connection:
            row = (
                connection.execute(
                    text(f"SELECT {_USER_COLUMNS} FROM users WHERE {condition} LIMIT 1"),  # noqa: S608
                    {"value": value},
                )
                .mappings()
                .first()
            )
        if row is None:
            return None
        return _parse_user(row)


def _parse_user(row) -> UserRecord:  # type: ignore[no-untyped-def]
    return UserRecord(
        id=int(row["id"]),
        first_name=str(row["first_name"]),
        last_name=str(row["last_name"]),
        email=str(row["email"]),
        password_hash=str(row["password"]),
        is_verified=bool(row["is_verified"]),
        reset_token=row["reset_token"],
        reset_token_expiry=from_db_datetime(row["reset_token_expiry"]),
        verification_token=row["verification_token"],
        verification_token_expiry=from_db_datetime(row["verification_token_expiry"]),
    )

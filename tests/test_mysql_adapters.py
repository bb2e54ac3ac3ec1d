"""Tests for SQL repositories against an in-memory SQLite engine."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.pool import StaticPool

from food_recognition.adapters.mysql import from_db_datetime, to_db_datetime
from food_recognition.adapters.mysql_food_repository import MySQLFoodRepository
from food_recognition.adapters.mysql_meal_log_repository import (
    MySQLMealLogRepository,
)
from food_recognition.adapters.mysql_user_repository import MySQLUserRepository
from food_recognition.domain.users import NewUser
from food_recognition.errors import AppError, ErrorKind

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

_SCHEMA = (
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL,
        is_verified BOOLEAN NOT NULL DEFAULT 0,
        reset_token TEXT,
        reset_token_expiry DATETIME,
        verification_token TEXT,
        verification_token_expiry DATETIME
    )
    """,
    """
    CREATE TABLE foods (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        ingredients TEXT NOT NULL,
        calories REAL,
        image_path TEXT,
        frequency_count INTEGER NOT NULL DEFAULT 1,
        last_accessed DATETIME
    )
    """,
    """
    CREATE TABLE meal_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        food_id INTEGER NOT NULL,
        consumed_at DATETIME NOT NULL,
        notes TEXT
    )
    """,
)


def _engine(with_schema: bool = True) -> Engine:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    if with_schema:
        with engine.begin() as connection:
            for statement in _SCHEMA:
                connection.execute(text(statement))
    return engine


def _new_user(email: str = "ada@example.com") -> NewUser:
    return NewUser(
        first_name="Ada", last_name="Obi", email=email, password_hash="$2b$10$hash"
    )


def test_datetime_helpers_normalize_to_utc() -> None:
    stored = to_db_datetime(NOW)

    assert stored.tzinfo is None
    assert from_db_datetime(stored) == NOW
    assert from_db_datetime("2026-03-01 12:00:00") == NOW
    assert from_db_datetime(None) is None


def test_user_repository_create_and_lookup() -> None:
    repository = MySQLUserRepository(_engine())

    user_id = repository.create_user(_new_user())

    user = repository.get_by_email("ada@example.com")
    assert user is not None
    assert user.id == user_id
    assert user.is_verified is False
    assert repository.get_by_id(user_id) == user
    assert repository.get_by_email("missing@example.com") is None


def test_user_repository_duplicate_email_conflicts() -> None:
    engine = _engine()
    repository = MySQLUserRepository(engine)
    repository.create_user(_new_user())

    with pytest.raises(AppError) as exc_info:
        repository.create_user(_new_user())

    assert exc_info.value.kind is ErrorKind.CONFLICT
    with engine.connect() as connection:
        count = connection.execute(text("SELECT COUNT(*) FROM users")).scalar_one()
    assert count == 1


def test_user_repository_reset_token_lifecycle() -> None:
    repository = MySQLUserRepository(_engine())
    user_id = repository.create_user(_new_user())
    expiry = NOW + timedelta(minutes=15)

    repository.set_reset_token("ada@example.com", "reset-token", expiry)
    user = repository.get_by_reset_token("reset-token")
    assert user is not None
    assert user.reset_token_expiry == expiry

    repository.update_password(user_id, "$2b$10$new")
    assert repository.get_by_reset_token("reset-token") is None
    updated = repository.get_by_id(user_id)
    assert updated is not None
    assert updated.password_hash == "$2b$10$new"


def test_user_repository_verification_lifecycle() -> None:
    repository = MySQLUserRepository(_engine())
    user_id = repository.create_user(_new_user())

    repository.set_verification_token("ada@example.com", "verify", NOW)
    assert repository.get_by_verification_token("verify") is not None
    repository.mark_verified(user_id)

    user = repository.get_by_id(user_id)
    assert user is not None
    assert user.is_verified is True
    assert user.verification_token is None


def test_food_repository_upsert_increments_frequency() -> None:
    repository = MySQLFoodRepository(_engine())

    first = repository.upsert_food(1, "Fufu", ["cassava"], 330.0, "abc.jpg", NOW)
    second = repository.upsert_food(
        1, "Fufu", ["cassava", "plantain"], None, None, NOW + timedelta(hours=1)
    )

    assert second.id == first.id
    assert second.frequency_count == 2
    assert second.ingredients == ["cassava", "plantain"]
    assert second.calories == 330.0
    assert second.image_path == "abc.jpg"
    assert second.last_accessed == NOW + timedelta(hours=1)


def test_food_repository_is_scoped_by_user() -> None:
    repository = MySQLFoodRepository(_engine())
    food = repository.upsert_food(1, "Fufu", ["cassava"], None, None, NOW)
    repository.upsert_food(1, "Suya", ["beef"], None, None, NOW)
    repository.upsert_food(1, "Suya", ["beef"], None, None, NOW)
    repository.upsert_food(2, "Kenkey", ["corn"], None, None, NOW)

    assert repository.get_food(2, food.id) is None
    assert [f.name for f in repository.list_frequent_foods(1, 10)] == ["Suya", "Fufu"]


def test_meal_log_repository_history_joins_foods() -> None:
    engine = _engine()
    foods = MySQLFoodRepository(engine)
    meals = MySQLMealLogRepository(engine)
    food = foods.upsert_food(1, "Fufu", ["cassava"], 330.0, None, NOW)
    older = meals.create_entry(1, food.id, NOW - timedelta(days=1), None)
    newer = meals.create_entry(1, food.id, NOW, "dinner")
    meals.create_entry(2, food.id, NOW, None)

    history = meals.list_history(1, limit=10, offset=0)

    assert meals.count_history(1) == 2
    assert [entry.id for entry in history] == [newer.id, older.id]
    assert history[0].name == "Fufu"
    assert history[0].ingredients == ["cassava"]
    assert history[0].consumed_at == NOW
    assert [entry.id for entry in meals.list_history(1, limit=1, offset=1)] == [
        older.id
    ]


def test_meal_log_repository_delete_is_scoped() -> None:
    meals = MySQLMealLogRepository(_engine())
    entry = meals.create_entry(1, 5, NOW, None)

    assert meals.delete_entry(2, entry.id) is False
    assert meals.delete_entry(1, entry.id) is True
    assert meals.delete_entry(1, entry.id) is False


def test_database_errors_surface_as_dependency_unavailable() -> None:
    repository = MySQLUserRepository(_engine(with_schema=False))

    with pytest.raises(AppError) as exc_info:
        repository.get_by_email("ada@example.com")

    assert exc_info.value.kind is ErrorKind.DEPENDENCY_UNAVAILABLE
    assert exc_info.value.status_code == 500

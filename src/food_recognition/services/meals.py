"""Meal logging and history."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from food_recognition.domain.foods import HistoryEntry, MealLogEntry
from food_recognition.errors import AppError
from food_recognition.services.foods import FoodRepository
from food_recognition.services.pagination import build_pagination
from food_recognition.services.validation import sanitize_text, validate_pagination

MAX_NOTES_LENGTH = 500


class MealLogRepository(Protocol):
    """Persistence interface for meal logs."""

    def create_entry(
        self, user_id: int, food_id: int, consumed_at: datetime, notes: str | None
    ) -> MealLogEntry:
        """Create a meal log entry and return it."""

    def delete_entry(self, user_id: int, entry_id: int) -> bool:
        """Delete one of the user's entries; return whether a row was removed."""

    def count_history(self, user_id: int) -> int:
        """Return the number of entries the user has logged."""

    def list_history(
        self, user_id: int, limit: int, offset: int
    ) -> list[HistoryEntry]:
        """Return entries joined with foods, newest first."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class MealLogService:
    """Service that records meals against a user's foods.

    Repository calls are blocking and run in worker threads.
    """

    repository: MealLogRepository
    food_repository: FoodRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def log_meal(
        self,
        user_id: int,
        food_id: object,
        consumed_at: datetime | None = None,
        notes: object = None,
    ) -> MealLogEntry:
        """Log a meal for one of the user's foods."""
        if not isinstance(food_id, int) or isinstance(food_id, bool) or food_id < 1:
            raise AppError.bad_request("foodId must be a positive integer")
        if notes is not None and (
            not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH
        ):
            raise AppError.bad_request(
                f"notes must be a string of at most {MAX_NOTES_LENGTH} characters"
            )
        food = await asyncio.to_thread(self.food_repository.get_food, user_id, food_id)
        if food is None:
            raise AppError.not_found("Food")
        when = consumed_at or self.clock()
        if when.tzinfo is None:
            when = when.replace(tzinfo=UTC)
        return await asyncio.to_thread(
            self.repository.create_entry,
            user_id,
            food_id,
            when,
            sanitize_text(notes) if isinstance(notes, str) else None,
        )

    async def delete_entry(self, user_id: int, entry_id: int) -> None:
        """Delete one of the user's meal log entries."""
        if not await asyncio.to_thread(self.repository.delete_entry, user_id, entry_id):
            raise AppError.not_found("Meal log entry")

    async def history(
        self, user_id: int, page: int = 1, limit: int = 10
    ) -> dict[str, object]:
        """Return a page of the user's meal history."""
        page, limit = validate_pagination(page, limit)
        total, entries = await asyncio.to_thread(self._page, user_id, page, limit)
        return {
            "history": [entry.as_dict() for entry in entries],
            "pagination": build_pagination(total, page, limit),
        }

    def _page(
        self, user_id: int, page: int, limit: int
    ) -> tuple[int, list[HistoryEntry]]:
        total = self.repository.count_history(user_id)
        entries = self.repository.list_history(user_id, limit, (page - 1) * limit)
        return total, entries

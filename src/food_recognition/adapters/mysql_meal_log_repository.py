"""MySQL-backed meal log repository."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, text

from food_recognition.adapters.mysql import (
    from_db_datetime,
    load_list,
    to_db_datetime,
    transaction,
)
from food_recognition.domain.foods import HistoryEntry, MealLogEntry
from food_recognition.services.meals import MealLogRepository


@dataclass
class MySQLMealLogRepository(MealLogRepository):
    """MySQL implementation for meal log entries."""

    engine: Engine

    def create_entry(
        self, user_id: int, food_id: int, consumed_at: datetime, notes: str | None
    ) -> MealLogEntry:
        with transaction(self.engine) as connection:
            result = connection.execute(
                text(
                    "INSERT INTO meal_log (user_id, food_id, consumed_at, notes) "
                    "VALUES (:user_id, :food_id, :consumed_at, :notes)"
                ),
                {
                    "user_id": user_id,
                    "food_id": food_id,
                    "consumed_at": to_db_datetime(consumed_at),
                    "notes": notes,
                },
            )
        if result.lastrowid is None:
            raise RuntimeError("Failed to insert meal log entry")
        return MealLogEntry(
            id=int(result.lastrowid),
            user_id=user_id,
            food_id=food_id,
            consumed_at=consumed_at,
            notes=notes,
        )

    def delete_entry(self, user_id: int, entry_id: int) -> bool:
        with transaction(self.engine) as connection:
            result = connection.execute(
                text("DELETE FROM meal_log WHERE id = :id AND user_id = :user_id"),
                {"id": entry_id, "user_id": user_id},
            )
        return result.rowcount > 0

    def count_history(self, user_id: int) -> int:
        with transaction(self.engine) as connection:
            total = connection.execute(
                text("SELECT COUNT(*) FROM meal_log WHERE user_id = :user_id"),
                {"user_id": user_id},
            ).scalar_one()
        return int(total)

    def list_history(
        self, user_id: int, limit: int, offset: int
    ) -> list[HistoryEntry]:
        """Return a page of entries joined with their foods, newest first."""
        with transaction(self.engine) as connection:
            rows = (
                connection.execute(
                    text(
                        "SELECT m.id, m.consumed_at, m.notes, f.id AS food_id, "
                        "f.name, f.ingredients, f.calories "
                        "FROM meal_log m JOIN foods f ON f.id = m.food_id "
                        "WHERE m.user_id = :user_id "
                        "ORDER BY m.consumed_at DESC, m.id DESC "
                        "LIMIT :limit OFFSET :offset"
                    ),
                    {"user_id": user_id, "limit": limit, "offset": offset},
                )
                .mappings()
                .all()
            )
        entries: list[HistoryEntry] = []
        for row in rows:
            consumed_at = from_db_datetime(row["consumed_at"])
            if consumed_at is None:
                continue
            calories = row["calories"]
            entries.append(
                HistoryEntry(
                    id=int(row["id"]),
                    consumed_at=consumed_at,
                    notes=row["notes"],
                    food_id=int(row["food_id"]),
                    name=str(row["name"]),
                    ingredients=load_list(row["ingredients"]),
                    calories=float(calories) if calories is not None else None,
                )
            )
        return entries

"""MySQL-backed food repository."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Connection, Engine, text

from food_recognition.adapters.mysql import (
    dump_list,
    from_db_datetime,
    load_list,
    to_db_datetime,
    transaction,
)
from food_recognition.domain.foods import FoodRecord
from food_recognition.services.foods import FoodRepository

_FOOD_COLUMNS = (
    "id, user_id, name, ingredients, calories, image_path, "
    "frequency_count, last_accessed"
)


@dataclass
class MySQLFoodRepository(FoodRepository):
    """MySQL implementation for the per-user food catalogue."""

    engine: Engine

    def upsert_food(  # noqa: PLR0913
        self,
        user_id: int,
        name: str,
        ingredients: list[str],
        calories: float | None,
        image_path: str | None,
        accessed_at: datetime,
    ) -> FoodRecord:
        params = {
            "user_id": user_id,
            "name": name,
            "ingredients": dump_list(ingredients),
            "calories": calories,
            "image_path": image_path,
            "accessed_at": to_db_datetime(accessed_at),
        }
        with transaction(self.engine) as connection:
            existing = connection.execute(
                text(
                    "SELECT id FROM foods WHERE user_id = :user_id "
                    "AND name = :name LIMIT 1"
                ),
                {"user_id": user_id, "name": name},
            ).first()
            if existing is not None:
                food_id = int(existing[0])
                connection.execute(
                    text(
                        "UPDATE foods SET ingredients = :ingredients, "
                        "calories = COALESCE(:calories, calories), "
                        "image_path = COALESCE(:image_path, image_path), "
                        "frequency_count = frequency_count + 1, "
                        "last_accessed = :accessed_at "
                        "WHERE id = :id AND user_id = :user_id"
                    ),
                    {**params, "id": food_id},
                )
            else:
                result = connection.execute(
                    text(
                        "INSERT INTO foods (user_id, name, ingredients, calories, "
                        "image_path, frequency_count, last_accessed) VALUES "
                        "(:user_id, :name, :ingredients, :calories, :image_path, "
                        "1, :accessed_at)"
                    ),
                    params,
                )
                if result.lastrowid is None:
                    raise RuntimeError("Failed to insert food")
                food_id = int(result.lastrowid)
            record = _select_food(connection, user_id, food_id)
        if record is None:
            raise RuntimeError("Food disappeared after upsert")
        return record

    def get_food(self, user_id: int, food_id: int) -> FoodRecord | None:
        with transaction(self.engine) as connection:
            return _select_food(connection, user_id, food_id)

    def list_frequent_foods(self, user_id: int, limit: int) -> list[FoodRecord]:
        with transaction(self.engine) as connection:
            rows = (
                connection.execute(
                    text(
                        f"SELECT {_FOOD_COLUMNS} FROM foods "  # noqa: S608
                        "WHERE user_id = :user_id "
                        "ORDER BY frequency_count DESC, last_accessed DESC "
                        "LIMIT :limit"
                    ),
                    {"user_id": user_id, "limit": limit},
                )
                .mappings()
                .all()
            )
        return [_parse_food(row) for row in rows]


def _select_food(
    connection: Connection, user_id: int, food_id: int
) -> FoodRecord | None:
    row = (
        connection.execute(
            text(
                f"SELECT {_FOOD_COLUMNS} FROM foods "  # noqa: S608
                "WHERE id = :id AND user_id = :user_id LIMIT 1"
            ),
            {"id": food_id, "user_id": user_id},
        )
        .mappings()
        .first()
    )
    if row is None:
        return None
    return _parse_food(row)


def _parse_food(row) -> FoodRecord:  # type: ignore[no-untyped-def]
    calories = row["calories"]
    return FoodRecord(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        name=str(row["name"]),
        ingredients=load_list(row["ingredients"]),
        calories=float(calories) if calories is not None else None,
        image_path=row["image_path"],
        frequency_count=int(row["frequency_count"] or 0),
        last_accessed=from_db_datetime(row["last_accessed"]),
    )

"""Shared test fixtures."""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field, replace
from datetime import datetime

import pytest
from limits.aio.storage import MemoryStorage
from limits.aio.strategies import FixedWindowRateLimiter

from food_recognition.config import Settings, parse_image_types
from food_recognition.containers import AppContainer
from food_recognition.domain.foods import FoodRecord, HistoryEntry, MealLogEntry
from food_recognition.domain.users import NewUser, UserRecord
from food_recognition.errors import AppError
from food_recognition.services.cache import InMemoryCache
from food_recognition.services.email import EmailSender, EmailService
from food_recognition.services.foods import FoodRepository, FoodService
from food_recognition.services.meals import MealLogRepository, MealLogService
from food_recognition.services.nutrition import NutritionService
from food_recognition.services.rate_limit import POLICIES, RateLimiter
from food_recognition.services.recognition import ModelClient, RecognitionService
from food_recognition.services.response_cache import ResponseCache, SingleFlight
from food_recognition.services.status import StatusService
from food_recognition.services.tokens import TokenService
from food_recognition.services.users import AuthService, UserRepository

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake-jpeg-payload" * 8


async def count_loop_ticks(awaitable: Awaitable[object], interval: float = 0.01) -> int:
    """Await work while counting how often a concurrent task got to run."""
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            await asyncio.sleep(interval)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        await awaitable
    finally:
        task.cancel()
    return ticks


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)
    next_id: int = 1

    def create_user(self, user: NewUser) -> int:
        if self.get_by_email(user.email) is not None:
            raise AppError.conflict("An account with this email already exists")
        user_id = self.next_id
        self.next_id += 1
        self.users[user_id] = UserRecord(
            id=user_id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password_hash=user.password_hash,
        )
        return user_id

    def get_by_id(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.email == email), None)

    def set_reset_token(self, email: str, token: str, expiry: datetime) -> None:
        self._update_by_email(email, reset_token=token, reset_token_expiry=expiry)

    def get_by_reset_token(self, token: str) -> UserRecord | None:
        return next(
            (u for u in self.users.values() if u.reset_token == token), None
        )

    def clear_reset_token(self, user_id: int) -> None:
        self._update(user_id, reset_token=None, reset_token_expiry=None)

    def update_password(self, user_id: int, password_hash: str) -> None:
        self._update(
            user_id,
            password_hash=password_hash,
            reset_token=None,
            reset_token_expiry=None,
        )

    def set_verification_token(
        self, email: str, token: str, expiry: datetime
    ) -> None:
        self._update_by_email(
            email, verification_token=token, verification_token_expiry=expiry
        )

    def get_by_verification_token(self, token: str) -> UserRecord | None:
        return next(
            (u for u in self.users.values() if u.verification_token == token), None
        )

    def mark_verified(self, user_id: int) -> None:
        self._update(
            user_id,
            is_verified=True,
            verification_token=None,
            verification_token_expiry=None,
        )

    def _update_by_email(self, email: str, **changes: object) -> None:
        user = self.get_by_email(email)
        if user is not None:
            self._update(user.id, **changes)

    def _update(self, user_id: int, **changes: object) -> None:
        user = self.users[user_id]
        self.users[user_id] = replace(user, **changes)


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory food repository for tests."""

    foods: dict[int, FoodRecord] = field(default_factory=dict)
    next_id: int = 1

    def upsert_food(  # noqa: PLR0913
        self,
        user_id: int,
        name: str,
        ingredients: list[str],
        calories: float | None,
        image_path: str | None,
        accessed_at: datetime,
    ) -> FoodRecord:
        existing = next(
            (
                food
                for food in self.foods.values()
                if food.user_id == user_id and food.name == name
            ),
            None,
        )
        if existing is None:
            record = FoodRecord(
                id=self.next_id,
                user_id=user_id,
                name=name,
                ingredients=list(ingredients),
                calories=calories,
                image_path=image_path,
                frequency_count=1,
                last_accessed=accessed_at,
            )
            self.next_id += 1
        else:
            record = FoodRecord(
                id=existing.id,
                user_id=user_id,
                name=name,
                ingredients=list(ingredients),
                calories=calories if calories is not None else existing.calories,
                image_path=image_path or existing.image_path,
                frequency_count=existing.frequency_count + 1,
                last_accessed=accessed_at,
            )
        self.foods[record.id] = record
        return record

    def get_food(self, user_id: int, food_id: int) -> FoodRecord | None:
        food = self.foods.get(food_id)
        if food is None or food.user_id != user_id:
            return None
        return food

    def list_frequent_foods(self, user_id: int, limit: int) -> list[FoodRecord]:
        owned = [food for food in self.foods.values() if food.user_id == user_id]
        owned.sort(
            key=lambda food: (food.frequency_count, food.last_accessed),
            reverse=True,
        )
        return owned[:limit]


@dataclass
class InMemoryMealLogRepository(MealLogRepository):
    """In-memory meal log repository for tests."""

    food_repository: InMemoryFoodRepository
    entries: dict[int, MealLogEntry] = field(default_factory=dict)
    next_id: int = 1

    def create_entry(
        self, user_id: int, food_id: int, consumed_at: datetime, notes: str | None
    ) -> MealLogEntry:
        entry = MealLogEntry(
            id=self.next_id,
            user_id=user_id,
            food_id=food_id,
            consumed_at=consumed_at,
            notes=notes,
        )
        self.next_id += 1
        self.entries[entry.id] = entry
        return entry

    def delete_entry(self, user_id: int, entry_id: int) -> bool:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return False
        del self.entries[entry_id]
        return True

    def count_history(self, user_id: int) -> int:
        return sum(1 for entry in self.entries.values() if entry.user_id == user_id)

    def list_history(
        self, user_id: int, limit: int, offset: int
    ) -> list[HistoryEntry]:
        owned = sorted(
            (entry for entry in self.entries.values() if entry.user_id == user_id),
            key=lambda entry: (entry.consumed_at, entry.id),
            reverse=True,
        )
        rows: list[HistoryEntry] = []
        for entry in owned[offset : offset + limit]:
            food = self.food_repository.foods[entry.food_id]
            rows.append(
                HistoryEntry(
                    id=entry.id,
                    consumed_at=entry.consumed_at,
                    notes=entry.notes,
                    food_id=food.id,
                    name=food.name,
                    ingredients=list(food.ingredients),
                    calories=food.calories,
                )
            )
        return rows


@dataclass
class FakeModelClient(ModelClient):
    """Fake model client returning fixed payloads per schema."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "food_prediction": {
                "name": "Jollof Rice",
                "origin": "West Africa",
                "ingredients": ["rice", "tomato", "pepper", "onion"],
            },
            "nutrition_estimate": {
                "calories": 450,
                "nutrients": {"protein": 9.5, "carbs": 78.0, "fat": 11.2},
            },
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "prompt": prompt,
                "schema_name": schema_name,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payloads[schema_name]


@dataclass
class FakeEmailSender(EmailSender):
    """Fake email sender that records outgoing messages."""

    sent: list[dict[str, str]] = field(default_factory=list)
    error: Exception | None = None

    async def send(self, *, to: str, subject: str, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "text": text})


@dataclass
class FakeHealthCheck:
    """Health check with a switchable result."""

    healthy: bool = True

    async def __call__(self) -> bool:
        return self.healthy


@pytest.fixture
def settings() -> Settings:
    return Settings(
        db_user="test",
        db_password="test",
        db_name="food_recognition",
        jwt_secret="test-secret-with-enough-length-for-hs256",
        openai_api_key="openai-key",
        frontend_url="http://localhost:3000",
        environment="test",
    )


@pytest.fixture
def model_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def token_service(settings: Settings) -> TokenService:
    return TokenService(secret=settings.jwt_secret)


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository()


@pytest.fixture
def auth_service(
    user_repository: InMemoryUserRepository,
    token_service: TokenService,
    email_sender: FakeEmailSender,
    cache: InMemoryCache,
) -> AuthService:
    return AuthService(
        repository=user_repository,
        tokens=token_service,
        email_service=EmailService(
            sender=email_sender,
            cache=cache,
            frontend_url="http://localhost:3000",
        ),
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    model_client: FakeModelClient,
    cache: InMemoryCache,
    token_service: TokenService,
    auth_service: AuthService,
    food_repository: InMemoryFoodRepository,
) -> AppContainer:
    response_cache = ResponseCache(cache, SingleFlight())
    recognition = RecognitionService(model_client)
    food_service = FoodService(
        repository=food_repository,
        recognition=recognition,
        response_cache=response_cache,
        allowed_image_types=parse_image_types(settings.allowed_image_types),
        max_upload_bytes=settings.max_upload_bytes,
    )
    meal_log_service = MealLogService(
        repository=InMemoryMealLogRepository(food_repository),
        food_repository=food_repository,
    )
    strategy = FixedWindowRateLimiter(MemoryStorage())

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        cache=cache,
        token_service=token_service,
        auth_service=auth_service,
        food_service=food_service,
        nutrition_service=NutritionService(
            recognition=recognition, response_cache=response_cache
        ),
        meal_log_service=meal_log_service,
        status_service=StatusService(
            {"redis": cache.ping, "database": FakeHealthCheck()}
        ),
        rate_limiters={
            name: RateLimiter(policy, strategy) for name, policy in POLICIES.items()
        },
        close_resources=close_resources,
    )


def bearer(token_service: TokenService, user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_service.issue_access_token(user_id)}"}

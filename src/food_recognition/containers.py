"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from functools import partial

from limits.aio.strategies import FixedWindowRateLimiter
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from food_recognition.adapters.gemini_client import HttpxGeminiClient
from food_recognition.adapters.mysql import create_mysql_engine, ping_async
from food_recognition.adapters.mysql_food_repository import MySQLFoodRepository
from food_recognition.adapters.mysql_meal_log_repository import (
    MySQLMealLogRepository,
)
from food_recognition.adapters.mysql_user_repository import MySQLUserRepository
from food_recognition.adapters.openai_model_client import OpenAIModelClient
from food_recognition.adapters.redis_cache import RedisCache
from food_recognition.adapters.redis_rate_limit_store import create_rate_limit_storage
from food_recognition.adapters.smtp_email_sender import SmtpEmailSender
from food_recognition.config import Settings, parse_image_types
from food_recognition.services.cache import Cache
from food_recognition.services.email import EmailService
from food_recognition.services.foods import FoodService
from food_recognition.services.meals import MealLogService
from food_recognition.services.nutrition import NutritionService
from food_recognition.services.rate_limit import POLICIES, RateLimiter
from food_recognition.services.recognition import RecognitionService
from food_recognition.services.response_cache import ResponseCache, SingleFlight
from food_recognition.services.status import StatusService
from food_recognition.services.tokens import TokenService
from food_recognition.services.users import AuthService

REDIS_RETRY_ATTEMPTS = 3


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    cache: Cache
    token_service: TokenService
    auth_service: AuthService
    food_service: FoodService
    nutrition_service: NutritionService
    meal_log_service: MealLogService
    status_service: StatusService
    rate_limiters: dict[str, RateLimiter]
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    engine = create_mysql_engine(resolved_settings)
    redis_client = Redis.from_url(
        resolved_settings.redis_url,
        decode_responses=True,
        retry=Retry(ExponentialBackoff(cap=2.0, base=0.1), REDIS_RETRY_ATTEMPTS),
        retry_on_error=[RedisConnectionError, RedisTimeoutError],
        health_check_interval=30,
    )
    cache = RedisCache(redis_client)
    response_cache = ResponseCache(cache, SingleFlight())

    if resolved_settings.ai_provider == "gemini":
        model_client: OpenAIModelClient | HttpxGeminiClient = HttpxGeminiClient.create(
            api_key=resolved_settings.gemini_api_key,
            model=resolved_settings.gemini_model,
            base_url=resolved_settings.gemini_base_url,
        )
    elif resolved_settings.ai_provider == "openai":
        model_client = OpenAIModelClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
        )
    else:
        raise ValueError(f"Unknown AI_PROVIDER: {resolved_settings.ai_provider}")
    recognition = RecognitionService(model_client)

    token_service = TokenService(
        secret=resolved_settings.jwt_secret,
        access_ttl=timedelta(minutes=resolved_settings.jwt_expires_minutes),
        reset_ttl=timedelta(minutes=resolved_settings.reset_token_expires_minutes),
    )
    email_service = EmailService(
        sender=SmtpEmailSender(
            host=resolved_settings.email_host,
            port=resolved_settings.email_port,
            username=resolved_settings.email_user or "",
            password=resolved_settings.email_password or "",
            from_address=resolved_settings.email_from,
        ),
        cache=cache,
        frontend_url=resolved_settings.frontend_url,
        support_email=resolved_settings.support_email,
        link_ttl_minutes=resolved_settings.reset_token_expires_minutes,
    )
    auth_service = AuthService(
        repository=MySQLUserRepository(engine),
        tokens=token_service,
        email_service=email_service,
        verification_ttl=timedelta(
            minutes=resolved_settings.verification_token_expires_minutes
        ),
    )
    food_repository = MySQLFoodRepository(engine)
    food_service = FoodService(
        repository=food_repository,
        recognition=recognition,
        response_cache=response_cache,
        allowed_image_types=parse_image_types(resolved_settings.allowed_image_types),
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )
    nutrition_service = NutritionService(
        recognition=recognition, response_cache=response_cache
    )
    meal_log_service = MealLogService(
        repository=MySQLMealLogRepository(engine),
        food_repository=food_repository,
    )
    status_service = StatusService(
        {"redis": cache.ping, "database": partial(ping_async, engine)}
    )
    rate_limit_strategy = FixedWindowRateLimiter(
        create_rate_limit_storage(resolved_settings.redis_url)
    )
    rate_limiters = {
        name: RateLimiter(policy, rate_limit_strategy)
        for name, policy in POLICIES.items()
    }

    async def close_resources() -> None:
        await model_client.close()
        await redis_client.aclose()
        engine.dispose()

    return AppContainer(
        settings=resolved_settings,
        cache=cache,
        token_service=token_service,
        auth_service=auth_service,
        food_service=food_service,
        nutrition_service=nutrition_service,
        meal_log_service=meal_log_service,
        status_service=status_service,
        rate_limiters=rate_limiters,
        close_resources=close_resources,
    )

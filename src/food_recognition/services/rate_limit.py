"""Per-route rate limiting on top of the ``limits`` fixed-window strategy."""

import logging
import math
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import cached_property

from limits import RateLimitItem, parse
from limits.aio.strategies import FixedWindowRateLimiter
from limits.errors import StorageError

from food_recognition.errors import AppError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """Points allowed per window and how long to block violators."""

    name: str
    key_prefix: str
    points: int
    duration_seconds: int
    block_duration_seconds: int = 0

    @cached_property
    def window(self) -> RateLimitItem:
        return parse(f"{self.points} per {self.duration_seconds} seconds")

    @cached_property
    def block(self) -> RateLimitItem | None:
        """Single-point item whose exhaustion marks the key as blocked."""
        if not self.block_duration_seconds:
            return None
        return parse(f"1 per {self.block_duration_seconds} seconds")


AUTH_POLICY = RateLimitPolicy(
    name="auth",
    key_prefix="rl_auth",
    points=5,
    duration_seconds=15 * 60,
    block_duration_seconds=60 * 60,
)
API_POLICY = RateLimitPolicy(
    name="api",
    key_prefix="rl_api",
    points=100,
    duration_seconds=5 * 60,
)
PASSWORD_RESET_POLICY = RateLimitPolicy(
    name="passwordReset",
    key_prefix="rl_pwreset",
    points=3,
    duration_seconds=60 * 60,
    block_duration_seconds=24 * 60 * 60,
)

POLICIES: dict[str, RateLimitPolicy] = {
    policy.name: policy for policy in (AUTH_POLICY, API_POLICY, PASSWORD_RESET_POLICY)
}


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of consuming a point."""

    allowed: bool
    remaining_points: int
    reset_at: float


@dataclass
class RateLimiter:
    """Apply a policy to identities using a shared ``limits`` strategy.

    Storage outages admit the request; the failure is logged.
    """

    policy: RateLimitPolicy
    strategy: FixedWindowRateLimiter

    async def consume(self, identity: str, route: str) -> RateLimitDecision:
        """Consume one point for identity on route; raise when limited."""
        key = f"{self.policy.key_prefix}:{identity}_{route}"
        try:
            return await self._consume(key)
        except StorageError:
            _logger.warning(
                "Rate limit storage unavailable",
                extra={"policy": self.policy.name, "key": key},
                exc_info=True,
            )
            return RateLimitDecision(
                allowed=True,
                remaining_points=self.policy.points,
                reset_at=time.time() + self.policy.duration_seconds,
            )

    async def _consume(self, key: str) -> RateLimitDecision:
        block = self.policy.block
        if block is not None and not await self.strategy.test(block, key):
            stats = await self.strategy.get_window_stats(block, key)
            raise _limited(self.policy, key, stats.reset_time)

        if await self.strategy.hit(self.policy.window, key):
            stats = await self.strategy.get_window_stats(self.policy.window, key)
            return RateLimitDecision(
                allowed=True,
                remaining_points=stats.remaining,
                reset_at=stats.reset_time,
            )

        if block is not None:
            await self.strategy.hit(block, key)
            stats = await self.strategy.get_window_stats(block, key)
        else:
            stats = await self.strategy.get_window_stats(self.policy.window, key)
        raise _limited(self.policy, key, stats.reset_time)


def _limited(policy: RateLimitPolicy, key: str, reset_at: float) -> AppError:
    retry_after = max(math.ceil(reset_at - time.time()), 1)
    _logger.warning(
        "Rate limit exceeded",
        extra={"policy": policy.name, "key": key, "retry_after": retry_after},
    )
    return AppError.rate_limited(
        retry_after,
        {
            "retryAfter": retry_after,
            "limit": policy.points,
            "remainingPoints": 0,
            "reset": datetime.fromtimestamp(reset_at, tz=UTC).isoformat(),
        },
    )

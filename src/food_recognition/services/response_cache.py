"""Cache-backed idempotent execution of expensive handlers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from food_recognition.services.cache import Cache

RETRY_PLACEHOLDER_TTL_SECONDS = 300

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedResult:
    """Value returned by the response cache with its provenance."""

    value: object
    hit: bool
    shared: bool = False


@dataclass
class SingleFlight:
    """Collapse concurrent calls for the same key into one execution."""

    _calls: dict[str, asyncio.Future] = field(default_factory=dict)

    async def do(
        self, key: str, func: Callable[[], Awaitable[object]]
    ) -> tuple[object, bool]:
        """Run func once per key; concurrent callers share its outcome.

        Returns the value and whether it was produced by another caller.
        """
        existing = self._calls.get(key)
        if existing is not None:
            return await asyncio.shield(existing), True

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._calls[key] = future
        try:
            result = await func()
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so an unobserved failure is not logged twice.
            future.exception()
            raise
        except BaseException:
            future.cancel()
            raise
        else:
            future.set_result(result)
            return result, False
        finally:
            self._calls.pop(key, None)

    def in_flight(self) -> int:
        return len(self._calls)


@dataclass
class ResponseCache:
    """Look up a fingerprinted result and compute it only on a miss."""

    cache: Cache
    single_flight: SingleFlight = field(default_factory=SingleFlight)

    async def get_or_compute(  # noqa: PLR0913
        self,
        key: str,
        compute: Callable[[], Awaitable[object]],
        *,
        ttl_seconds: int,
        failure_value: object | None = None,
        failure_ttl_seconds: int = RETRY_PLACEHOLDER_TTL_SECONDS,
    ) -> CachedResult:
        """Return the cached value for key or compute, store and return it."""
        cached = await self.cache.get(key)
        if cached is not None:
            return CachedResult(value=cached, hit=True)

        async def run() -> object:
            try:
                value = await compute()
            except Exception:
                if failure_value is not None:
                    _logger.warning(
                        "Caching retry placeholder after failure",
                        extra={"cache_key": key, "ttl": failure_ttl_seconds},
                    )
                    await self.cache.set(
                        key, failure_value, ttl_seconds=failure_ttl_seconds
                    )
                raise
            await self.cache.set(key, value, ttl_seconds=ttl_seconds)
            return value

        value, shared = await self.single_flight.do(key, run)
        return CachedResult(value=value, hit=False, shared=shared)

"""Redis-backed cache."""

import json
import logging
from dataclasses import dataclass

from redis.asyncio import Redis
from redis.exceptions import RedisError

from food_recognition.services.cache import Cache

_logger = logging.getLogger(__name__)


@dataclass
class RedisCache(Cache):
    """Cache storing JSON values with a per-key expiry.

    Backend failures are logged and treated as misses so requests fall
    through to the origin.
    """

    client: Redis

    async def get(self, key: str) -> object | None:
        try:
            raw = await self.client.get(key)
        except RedisError:
            _logger.warning("Cache read failed", extra={"cache_key": key}, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            _logger.warning("Discarding malformed cache entry", extra={"cache_key": key})
            return None

    async def set(self, key: str, value: object, ttl_seconds: int) -> None:
        try:
            await self.client.setex(
                key, ttl_seconds, json.dumps(value, ensure_ascii=False)
            )
        except RedisError:
            _logger.warning("Cache write failed", extra={"cache_key": key}, exc_info=True)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError:
            _logger.warning("Cache delete failed", extra={"cache_key": key}, exc_info=True)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError:
            _logger.warning("Redis ping failed", exc_info=True)
            return False

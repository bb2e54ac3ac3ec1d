"""Redis-backed storage for the ``limits`` rate-limit strategies."""

from limits.aio.storage import RedisStorage


def rate_limit_storage_uri(redis_url: str) -> str:
    """Map a ``redis://`` or ``rediss://`` URL to its async ``limits`` scheme."""
    if redis_url.startswith("async+"):
        return redis_url
    return f"async+{redis_url}"


def create_rate_limit_storage(redis_url: str) -> RedisStorage:
    """Build counters shared by every worker.

    Storage failures surface as ``limits.errors.StorageError`` so the
    limiter can tell outages from programming errors.
    """
    return RedisStorage(
        rate_limit_storage_uri(redis_url),
        implementation="redispy",
        wrap_exceptions=True,
    )

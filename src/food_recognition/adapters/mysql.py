"""Pooled MySQL access through SQLAlchemy Core."""

import asyncio
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import Connection, Engine, create_engine, text
from sqlalchemy.exc import OperationalError

from food_recognition.config import Settings
from food_recognition.errors import AppError, ErrorKind

_logger = logging.getLogger(__name__)


def create_mysql_engine(settings: Settings) -> Engine:
    """Create a bounded connection pool for the configured database."""
    return create_engine(
        settings.database_url(),
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


@contextmanager
def transaction(engine: Engine) -> Iterator[Connection]:
    """Yield a pooled connection inside a transaction.

    The connection goes back to the pool on every exit path. Connectivity
    failures surface as DEPENDENCY_UNAVAILABLE.
    """
    try:
        with engine.begin() as connection:
            yield connection
    except OperationalError as exc:
        _logger.exception("Database unavailable")
        raise AppError(ErrorKind.DEPENDENCY_UNAVAILABLE) from exc


def ping(engine: Engine) -> bool:
    """Return true when a pooled connection can run a trivial query."""
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return True


async def ping_async(engine: Engine) -> bool:
    return await asyncio.to_thread(ping, engine)


def to_db_datetime(value: datetime) -> datetime:
    """Convert to the naive UTC form stored in DATETIME columns."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


def from_db_datetime(value: object) -> datetime | None:
    """Parse a DATETIME column value into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        raise TypeError(f"Unexpected datetime value: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def dump_list(items: list[str]) -> str:
    return json.dumps(items, ensure_ascii=False)


def load_list(raw: object) -> list[str]:
    """Parse a serialized ingredient list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]

"""Backing service health checks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

_logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Awaitable[bool]]


@dataclass
class StatusService:
    """Aggregate health of the API and its dependencies."""

    checks: dict[str, HealthCheck]

    async def status(self) -> dict[str, object]:
        """Run every check concurrently and summarize the result."""
        names = list(self.checks)
        results = await asyncio.gather(
            *(self._run(name) for name in names),
        )
        services = {"api": "healthy"}
        for name, ok in zip(names, results, strict=True):
            services[name] = "healthy" if ok else "unhealthy"
        overall = (
            "healthy"
            if all(value == "healthy" for value in services.values())
            else "degraded"
        )
        return {"services": services, "overall": overall}

    async def _run(self, name: str) -> bool:
        try:
            return await self.checks[name]()
        except Exception:
            _logger.exception("Health check failed", extra={"check": name})
            return False

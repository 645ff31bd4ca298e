from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from app.application.exceptions import InvalidConfiguration, RepositoryUnavailableError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.stored_at < ttl


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for read-only fetches. Writes must never go through this."""

    max_attempts: int = 3
    delay_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise InvalidConfiguration("RetryPolicy.max_attempts must be >= 1")
        if self.delay_seconds < 0:
            raise InvalidConfiguration("RetryPolicy.delay_seconds must be >= 0")

    async def run(self, fetch: Callable[[], Awaitable[T]], *, operation: str = "fetch") -> T:
        attempt = 1
        while True:
            try:
                return await fetch()
            except RepositoryUnavailableError as e:
                logger.warning(
                    "Read failed",
                    extra={"operation": operation, "attempt": attempt, "reason": str(e)},
                )
                if attempt >= self.max_attempts:
                    raise
            await self.sleep(self.delay_seconds)
            attempt += 1


async def fetch_with_fallback(
    fetch: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    cache: CacheEntry[T] | None,
    now: datetime,
    ttl: timedelta,
    *,
    operation: str = "fetch",
) -> tuple[T, CacheEntry[T] | None]:
    """
    Run fetch under the retry policy.
    Returns the value plus the cache entry the caller should keep. A failed fetch
    falls back to a still-fresh cache entry; otherwise the error propagates.
    """
    try:
        value = await policy.run(fetch, operation=operation)
    except RepositoryUnavailableError:
        if cache is not None and cache.is_fresh(now, ttl):
            logger.info("Serving cached value", extra={"operation": operation, "reason": "fetch_failed"})
            return cache.value, cache
        raise
    return value, CacheEntry(value=value, stored_at=now)

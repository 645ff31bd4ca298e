from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.utils.retry import CacheEntry, RetryPolicy, fetch_with_fallback
from app.domain.entities.service import Service


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ListServicesUseCase:
    """Catalog reads with bounded retry and a time-boxed fallback cache."""

    def __init__(
        self,
        catalog: ServiceCatalogPort,
        retry_policy: RetryPolicy | None = None,
        cache_ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._catalog = catalog
        self._retry_policy = retry_policy or RetryPolicy()
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._cache: CacheEntry[list[Service]] | None = None

    @property
    def cache(self) -> CacheEntry[list[Service]] | None:
        return self._cache

    async def execute(self) -> list[Service]:
        services, self._cache = await fetch_with_fallback(
            self._catalog.list_services,
            self._retry_policy,
            self._cache,
            self._clock(),
            self._cache_ttl,
            operation="list_services",
        )
        return list(services)

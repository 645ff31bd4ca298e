"""
Tests for the bounded read retry policy and the time-boxed fallback cache.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.application.exceptions import InvalidConfiguration, RepositoryUnavailableError
from app.application.use_cases.list_services import ListServicesUseCase
from app.application.utils.retry import CacheEntry, RetryPolicy, fetch_with_fallback
from app.infrastructure.catalog.static_catalog import StaticServiceCatalog

NOW = datetime(2025, 8, 1, 12, 0, tzinfo=timezone.utc)


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FlakyFetch:
    def __init__(self, failures: int, value: object = "ok") -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RepositoryUnavailableError("timeout")
        return self.value


def test_retry_succeeds_after_transient_failures():
    sleep = FakeSleep()
    fetch = FlakyFetch(failures=2)

    result = asyncio.run(RetryPolicy(max_attempts=3, delay_seconds=2.0, sleep=sleep).run(fetch))

    assert result == "ok"
    assert fetch.calls == 3
    assert sleep.calls == [2.0, 2.0]


def test_retry_gives_up_after_max_attempts():
    sleep = FakeSleep()
    fetch = FlakyFetch(failures=5)

    with pytest.raises(RepositoryUnavailableError):
        asyncio.run(RetryPolicy(max_attempts=3, delay_seconds=1.0, sleep=sleep).run(fetch))

    assert fetch.calls == 3
    assert sleep.calls == [1.0, 1.0]


def test_retry_does_not_catch_other_errors():
    async def broken():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        asyncio.run(RetryPolicy(sleep=FakeSleep()).run(broken))


def test_invalid_policy_is_rejected():
    with pytest.raises(InvalidConfiguration):
        RetryPolicy(max_attempts=0)


def test_fallback_uses_fresh_cache_only():
    policy = RetryPolicy(sleep=FakeSleep())
    cache = CacheEntry(value=["cached"], stored_at=NOW - timedelta(minutes=1))

    value, kept = asyncio.run(
        fetch_with_fallback(FlakyFetch(failures=9), policy, cache, NOW, timedelta(minutes=5))
    )
    assert value == ["cached"]
    assert kept is cache

    stale = CacheEntry(value=["cached"], stored_at=NOW - timedelta(minutes=6))
    with pytest.raises(RepositoryUnavailableError):
        asyncio.run(fetch_with_fallback(FlakyFetch(failures=9), policy, stale, NOW, timedelta(minutes=5)))


def test_successful_fetch_refreshes_cache():
    policy = RetryPolicy(sleep=FakeSleep())

    value, entry = asyncio.run(
        fetch_with_fallback(FlakyFetch(failures=0, value=["fresh"]), policy, None, NOW, timedelta(minutes=5))
    )

    assert value == ["fresh"]
    assert entry == CacheEntry(value=["fresh"], stored_at=NOW)


def test_list_services_falls_back_to_cache():
    class DownAfterFirst(StaticServiceCatalog):
        calls = 0

        async def list_services(self):
            DownAfterFirst.calls += 1
            if DownAfterFirst.calls > 1:
                raise RepositoryUnavailableError("down")
            return await super().list_services()

    use_case = ListServicesUseCase(
        DownAfterFirst(),
        retry_policy=RetryPolicy(sleep=FakeSleep()),
        clock=lambda: NOW,
    )

    first = asyncio.run(use_case.execute())
    second = asyncio.run(use_case.execute())

    assert [s.id for s in first] == [s.id for s in second]
    assert use_case.cache is not None
    assert DownAfterFirst.calls == 4


def test_retry_reraises_the_last_failure():
    errors = [RepositoryUnavailableError("first"), RepositoryUnavailableError("second")]

    async def fetch():
        raise errors.pop(0)

    with pytest.raises(RepositoryUnavailableError) as exc_info:
        asyncio.run(RetryPolicy(max_attempts=2, delay_seconds=0.0, sleep=FakeSleep()).run(fetch))

    assert str(exc_info.value) == "second"

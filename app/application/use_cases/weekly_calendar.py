from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.utils.retry import CacheEntry, RetryPolicy, fetch_with_fallback
from app.application.utils.weekly import (
    HourRange,
    WeeklyGrid,
    WeekWindow,
    build_weekly_grid,
    jump_to_today,
    next_week,
    previous_week,
    week_window,
)
from app.domain.entities.booking import Booking


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WeeklyCalendarUseCase:
    """
    Staff calendar: fetch the bookings of one week and bucket them by day and hour.
    Navigation only moves the pivot date; booking data is never touched.
    """

    def __init__(
        self,
        repository: BookingRepositoryPort,
        hour_range: HourRange | None = None,
        retry_policy: RetryPolicy | None = None,
        cache_ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._repository = repository
        self._hour_range = hour_range or HourRange()
        self._retry_policy = retry_policy or RetryPolicy()
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._cache: dict[date, CacheEntry[list[Booking]]] = {}
        self._window = jump_to_today(self._clock().date())
        self._logger = logging.getLogger(__name__)

    @property
    def window(self) -> WeekWindow:
        return self._window

    @property
    def cached_weeks(self) -> list[date]:
        return sorted(self._cache)

    def go_to(self, pivot: date) -> WeekWindow:
        self._window = week_window(pivot)
        return self._window

    def next_week(self) -> WeekWindow:
        self._window = next_week(self._window)
        return self._window

    def previous_week(self) -> WeekWindow:
        self._window = previous_week(self._window)
        return self._window

    def jump_to_today(self) -> WeekWindow:
        self._window = jump_to_today(self._clock().date())
        return self._window

    async def load(self, pivot: date | None = None) -> WeeklyGrid:
        """Grid for the current window, or for the week around pivot without moving the view."""
        window = week_window(pivot) if pivot is not None else self._window
        now = self._clock()
        bookings, entry = await fetch_with_fallback(
            lambda: self._repository.list_by_date_range(window.start, window.end),
            self._retry_policy,
            self._cache.get(window.start),
            now,
            self._cache_ttl,
            operation="list_bookings_for_week",
        )
        self._cache = {
            start: kept for start, kept in self._cache.items() if kept.is_fresh(now, self._cache_ttl)
        }
        if entry is not None:
            self._cache[window.start] = entry
        grid = build_weekly_grid(bookings, window.start, self._hour_range)
        self._logger.debug(
            "Weekly grid built",
            extra={"date": window.start.isoformat(), "bookings": len(bookings), "empty": grid.is_empty},
        )
        return grid

    def invalidate(self) -> None:
        """Drop cached weeks after a write (status change, deletion, walk-in)."""
        self._cache.clear()

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from app.application.exceptions import InvalidConfiguration
from app.domain.entities.booking import Booking

BucketKey = tuple[date, int]


@dataclass(frozen=True)
class WeekWindow:
    start: date  # Monday
    end: date  # Sunday

    def days(self) -> list[date]:
        return [self.start + timedelta(days=offset) for offset in range(7)]

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class HourRange:
    start: int = 9
    end: int = 19

    def __post_init__(self) -> None:
        if not 0 <= self.start < self.end <= 24:
            raise InvalidConfiguration(
                f"Calendar hours must satisfy 0 <= start < end <= 24, got {self.start}-{self.end}"
            )

    def hours(self) -> list[int]:
        return list(range(self.start, self.end))

    def contains(self, hour: int) -> bool:
        return self.start <= hour < self.end


def week_window(pivot: date) -> WeekWindow:
    start = pivot - timedelta(days=pivot.weekday())
    return WeekWindow(start=start, end=start + timedelta(days=6))


def next_week(window: WeekWindow) -> WeekWindow:
    return week_window(window.start + timedelta(days=7))


def previous_week(window: WeekWindow) -> WeekWindow:
    return week_window(window.start - timedelta(days=7))


def jump_to_today(today: date) -> WeekWindow:
    return week_window(today)


def bucket_key(booking: Booking) -> BucketKey:
    return (booking.date, booking.time.hour)


def aggregate(
    bookings: Iterable[Booking],
    week_start: date,
    week_end: date,
    hour_range: HourRange = HourRange(),
) -> dict[BucketKey, list[Booking]]:
    """
    Bucket bookings into (day, hour) cells for the given week.
    Times are truncated to the hour; each cell keeps the input order.
    Bookings outside the window or the hour range are left out.
    """
    buckets: dict[BucketKey, list[Booking]] = {}
    for booking in bookings:
        if not week_start <= booking.date <= week_end:
            continue
        key = bucket_key(booking)
        if not hour_range.contains(key[1]):
            continue
        buckets.setdefault(key, []).append(booking)
    return buckets


def has_bookings(bookings: Iterable[Booking], window: WeekWindow) -> bool:
    return any(window.contains(booking.date) for booking in bookings)


@dataclass(frozen=True)
class WeeklyGrid:
    window: WeekWindow
    hour_range: HourRange
    buckets: dict[BucketKey, list[Booking]] = field(default_factory=dict)
    is_empty: bool = True

    def cell(self, day: date, hour: int) -> list[Booking]:
        return list(self.buckets.get((day, hour), []))


def build_weekly_grid(
    bookings: Iterable[Booking],
    pivot: date,
    hour_range: HourRange = HourRange(),
) -> WeeklyGrid:
    bookings = list(bookings)
    window = week_window(pivot)
    return WeeklyGrid(
        window=window,
        hour_range=hour_range,
        buckets=aggregate(bookings, window.start, window.end, hour_range),
        is_empty=not has_bookings(bookings, window),
    )

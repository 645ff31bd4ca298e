from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time

from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.utils.availability import SlotOccupancyPolicy, available_slots, is_slot_free
from app.application.utils.retry import RetryPolicy
from app.application.utils.slot_grid import generate_slots
from app.domain.entities.booking import Booking


@dataclass(frozen=True)
class SlotGridConfig:
    start_hour: int = 9
    end_hour: int = 19
    interval_minutes: int = 30
    policy: SlotOccupancyPolicy = field(default_factory=SlotOccupancyPolicy)

    def candidate_slots(self) -> list[time]:
        return generate_slots(self.start_hour, self.end_hour, self.interval_minutes)


@dataclass(frozen=True)
class DayAvailability:
    date: date
    slots: list[time]
    bookings: list[Booking]


class AvailabilityUseCase:
    def __init__(
        self,
        repository: BookingRepositoryPort,
        grid: SlotGridConfig,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._repository = repository
        self._grid = grid
        self._retry_policy = retry_policy or RetryPolicy()
        self._logger = logging.getLogger(__name__)

    @property
    def grid(self) -> SlotGridConfig:
        return self._grid

    async def bookings_on(self, booking_date: date) -> list[Booking]:
        return await self._retry_policy.run(
            lambda: self._repository.list_by_date_range(booking_date, booking_date),
            operation="list_bookings_for_date",
        )

    async def for_date(self, booking_date: date) -> DayAvailability:
        bookings = await self.bookings_on(booking_date)
        slots = available_slots(booking_date, self._grid.candidate_slots(), bookings, self._grid.policy)
        self._logger.debug(
            "Availability computed",
            extra={"date": booking_date.isoformat(), "free_slots": len(slots)},
        )
        return DayAvailability(date=booking_date, slots=slots, bookings=bookings)

    async def is_free(self, booking_date: date, slot: time) -> bool:
        """Single fresh read, taken right before insert."""
        bookings = await self._repository.list_by_date_range(booking_date, booking_date)
        return is_slot_free(booking_date, slot, bookings, self._grid.policy)

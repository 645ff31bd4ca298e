from __future__ import annotations

import logging
from datetime import date

from app.application.exceptions import BookingNotFoundError, SlotConflictError
from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.utils.availability import SlotOccupancyPolicy
from app.domain.entities.booking import Booking, BookingStatus, RegisteredCustomer


class MemoryBookingRepository(BookingRepositoryPort):
    def __init__(
        self,
        bookings: list[Booking] | None = None,
        policy: SlotOccupancyPolicy | None = None,
    ) -> None:
        self._bookings: dict[str, Booking] = {}
        self._policy = policy or SlotOccupancyPolicy()
        self._logger = logging.getLogger(__name__)
        for booking in bookings or []:
            self._bookings[booking.id] = booking

    async def list_by_date_range(self, start: date, end: date) -> list[Booking]:
        return sorted(
            (b for b in self._bookings.values() if start <= b.date <= end),
            key=lambda b: (b.date, b.time, b.created_at),
        )

    async def list_by_customer(self, user_id: str) -> list[Booking]:
        return sorted(
            (
                b
                for b in self._bookings.values()
                if isinstance(b.customer, RegisteredCustomer) and b.customer.user_id == user_id
            ),
            key=lambda b: (b.date, b.time, b.created_at),
        )

    async def get(self, booking_id: str) -> Booking | None:
        return self._bookings.get(booking_id)

    async def insert(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise ValueError(f"Booking {booking.id!r} already exists")
        # Uniqueness on (date, time) among slot-occupying bookings.
        if self._policy.occupies_slot(booking):
            for existing in self._bookings.values():
                if (
                    existing.date == booking.date
                    and existing.time == booking.time
                    and self._policy.occupies_slot(existing)
                ):
                    raise SlotConflictError(booking.date, booking.time)
        self._bookings[booking.id] = booking
        self._logger.debug("Booking stored", extra={"booking_id": booking.id})
        return booking

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        updated = booking.with_status(status)
        self._bookings[booking_id] = updated
        return updated

    async def delete(self, booking_id: str) -> None:
        if self._bookings.pop(booking_id, None) is None:
            raise BookingNotFoundError(booking_id)

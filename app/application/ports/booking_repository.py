from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from app.domain.entities.booking import Booking, BookingStatus


class BookingRepositoryPort(ABC):
    """Persistence for bookings.

    Implementations must reject an insert whose (date, time) is already held by a
    slot-occupying booking by raising SlotConflictError; the scheduling core only
    pre-checks, which is racy on its own.
    """

    @abstractmethod
    async def list_by_date_range(self, start: date, end: date) -> list[Booking]:
        """List bookings whose date falls in [start, end], inclusive."""
        raise NotImplementedError

    @abstractmethod
    async def list_by_customer(self, user_id: str) -> list[Booking]:
        """List a registered customer's bookings ordered by date and time."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, booking: Booking) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        """Persist a new status. Raises BookingNotFoundError for unknown ids."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, booking_id: str) -> None:
        """Remove a booking entirely. Raises BookingNotFoundError for unknown ids."""
        raise NotImplementedError

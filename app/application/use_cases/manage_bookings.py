from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime, time, timezone

from app.application.exceptions import BookingNotFoundError, SlotConflictError
from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.use_cases.availability import AvailabilityUseCase
from app.application.utils.transitions import apply_transition
from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    Customer,
    PaymentMethod,
    RegisteredCustomer,
)
from app.domain.entities.service import Service


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ManageBookingsUseCase:
    """Staff and customer actions on existing bookings."""

    def __init__(
        self,
        repository: BookingRepositoryPort,
        walk_in_availability: AvailabilityUseCase,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._repository = repository
        self._walk_in_availability = walk_in_availability
        self._clock = clock
        self._id_factory = id_factory
        self._logger = logging.getLogger(__name__)

    async def _load(self, booking_id: str) -> Booking:
        booking = await self._repository.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def change_status(self, booking_id: str, target: BookingStatus) -> Booking:
        """Staff status change, gated by the transition table."""
        booking = await self._load(booking_id)
        updated = apply_transition(booking, target)
        saved = await self._repository.update_status(booking_id, updated.status)
        self._logger.info(
            "Booking status changed",
            extra={"booking_id": booking_id, "status": saved.status.value, "previous": booking.status.value},
        )
        return saved

    async def customer_bookings(self, user_id: str) -> list[Booking]:
        """Bookings of a registered customer, earliest first."""
        return await self._repository.list_by_customer(user_id)

    async def cancel_by_customer(self, booking_id: str, user_id: str) -> Booking:
        """A registered customer cancelling their own pending or confirmed booking."""
        booking = await self._load(booking_id)
        if not isinstance(booking.customer, RegisteredCustomer) or booking.customer.user_id != user_id:
            # Other customers' bookings are reported as missing.
            raise BookingNotFoundError(booking_id)
        updated = apply_transition(booking, BookingStatus.CANCELLED)
        saved = await self._repository.update_status(booking_id, updated.status)
        self._logger.info("Booking cancelled by customer", extra={"booking_id": booking_id, "status": saved.status.value})
        return saved

    async def delete(self, booking_id: str) -> None:
        """Unconditional staff deletion. Not a status transition; the record is gone."""
        await self._repository.delete(booking_id)
        self._logger.info("Booking deleted", extra={"booking_id": booking_id})

    async def register_walk_in(
        self,
        service: Service,
        booking_date: date,
        slot: time,
        customer: Customer,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        comments: str | None = None,
    ) -> Booking:
        """
        Staff-entered walk-in, stored directly as confirmed.
        Every other entry point creates pending bookings.
        """
        if slot not in self._walk_in_availability.grid.candidate_slots():
            raise ValueError(f"{slot.strftime('%H:%M')} is not on the walk-in slot grid")
        if not await self._walk_in_availability.is_free(booking_date, slot):
            raise SlotConflictError(booking_date, slot)
        booking = Booking(
            id=self._id_factory(),
            service_id=service.id,
            date=booking_date,
            time=slot,
            status=BookingStatus.CONFIRMED,
            customer=customer,
            created_at=self._clock(),
            payment_method=payment_method,
            comments=comments,
            price=service.price,
            duration_minutes=service.duration_minutes,
        )
        saved = await self._repository.insert(booking)
        self._logger.info(
            "Walk-in registered",
            extra={"booking_id": saved.id, "status": saved.status.value, "date": booking_date.isoformat()},
        )
        return saved

"""
Tests for staff and customer actions on stored bookings.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from app.application.exceptions import BookingNotFoundError, InvalidTransition, SlotConflictError
from app.application.use_cases.availability import AvailabilityUseCase, SlotGridConfig
from app.application.use_cases.manage_bookings import ManageBookingsUseCase
from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    GuestCustomer,
    PaymentMethod,
    RegisteredCustomer,
)
from app.domain.entities.service import Service
from app.infrastructure.store.memory_booking_repository import MemoryBookingRepository

NOW = datetime(2025, 8, 1, 10, 0, tzinfo=timezone.utc)
DAY = date(2025, 8, 4)
MASSAGE = Service(id="1", name="Relaxing Massage", short_description="", price=Decimal("35000"), duration_minutes=60)


def _booking(booking_id: str, status: BookingStatus, customer=None, at: time = time(10, 0)) -> Booking:
    return Booking(
        id=booking_id,
        service_id="1",
        date=DAY,
        time=at,
        status=status,
        customer=customer or RegisteredCustomer(user_id="user-1"),
        created_at=NOW,
    )


def _use_case(bookings=()) -> tuple[ManageBookingsUseCase, MemoryBookingRepository]:
    repository = MemoryBookingRepository(list(bookings))
    use_case = ManageBookingsUseCase(
        repository=repository,
        walk_in_availability=AvailabilityUseCase(repository, SlotGridConfig(9, 19, 5)),
        clock=lambda: NOW,
        id_factory=lambda: "walk-in-1",
    )
    return use_case, repository


def test_staff_confirms_then_completes():
    uc, repository = _use_case([_booking("b1", BookingStatus.PENDING)])

    asyncio.run(uc.change_status("b1", BookingStatus.CONFIRMED))
    done = asyncio.run(uc.change_status("b1", BookingStatus.COMPLETED))

    assert done.status == BookingStatus.COMPLETED
    assert asyncio.run(repository.get("b1")).status == BookingStatus.COMPLETED


def test_terminal_status_cannot_change():
    uc, repository = _use_case([_booking("b1", BookingStatus.CANCELLED)])

    with pytest.raises(InvalidTransition) as exc_info:
        asyncio.run(uc.change_status("b1", BookingStatus.CONFIRMED))

    assert exc_info.value.allowed == ()
    assert asyncio.run(repository.get("b1")).status == BookingStatus.CANCELLED


def test_unknown_booking_status_change():
    uc, _ = _use_case()

    with pytest.raises(BookingNotFoundError):
        asyncio.run(uc.change_status("missing", BookingStatus.CONFIRMED))


@pytest.mark.parametrize("status", list(BookingStatus))
def test_delete_works_from_every_status_and_is_final(status):
    uc, repository = _use_case([_booking("b1", status)])

    asyncio.run(uc.delete("b1"))

    assert asyncio.run(repository.get("b1")) is None
    with pytest.raises(BookingNotFoundError):
        asyncio.run(uc.delete("b1"))


def test_customer_cancels_own_booking():
    uc, _ = _use_case([_booking("b1", BookingStatus.CONFIRMED)])

    cancelled = asyncio.run(uc.cancel_by_customer("b1", "user-1"))

    assert cancelled.status == BookingStatus.CANCELLED


def test_customer_cannot_cancel_someone_elses_booking():
    guest = GuestCustomer(name="Ana", email="ana@example.com", phone="+56912345678")
    uc, repository = _use_case(
        [_booking("b1", BookingStatus.PENDING), _booking("b2", BookingStatus.PENDING, guest, time(11, 0))]
    )

    with pytest.raises(BookingNotFoundError):
        asyncio.run(uc.cancel_by_customer("b1", "user-2"))
    with pytest.raises(BookingNotFoundError):
        asyncio.run(uc.cancel_by_customer("b2", "user-1"))
    assert asyncio.run(repository.get("b1")).status == BookingStatus.PENDING


def test_completed_booking_cannot_be_cancelled_by_customer():
    uc, _ = _use_case([_booking("b1", BookingStatus.COMPLETED)])

    with pytest.raises(InvalidTransition):
        asyncio.run(uc.cancel_by_customer("b1", "user-1"))


def test_walk_in_is_stored_confirmed_on_five_minute_grid():
    uc, repository = _use_case()
    guest = GuestCustomer(name="Luis", email="luis@example.com", phone="+56933334444")

    booking = asyncio.run(
        uc.register_walk_in(MASSAGE, DAY, time(14, 35), guest, payment_method=PaymentMethod.TRANSFER)
    )

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_method == PaymentMethod.TRANSFER
    assert booking.price == Decimal("35000")
    assert asyncio.run(repository.list_by_date_range(DAY, DAY)) == [booking]


def test_walk_in_off_grid_or_taken_slot_is_rejected():
    uc, _ = _use_case([_booking("b1", BookingStatus.PENDING)])
    guest = GuestCustomer(name="Luis", email="luis@example.com", phone="+56933334444")

    with pytest.raises(ValueError):
        asyncio.run(uc.register_walk_in(MASSAGE, DAY, time(14, 37), guest))
    with pytest.raises(SlotConflictError):
        asyncio.run(uc.register_walk_in(MASSAGE, DAY, time(10, 0), guest))


def test_cancelled_booking_frees_slot_for_walk_in():
    uc, _ = _use_case([_booking("b1", BookingStatus.CANCELLED)])
    guest = GuestCustomer(name="Luis", email="luis@example.com", phone="+56933334444")

    booking = asyncio.run(uc.register_walk_in(MASSAGE, DAY, time(10, 0), guest))

    assert booking.time == time(10, 0)


def test_customer_bookings_are_their_own_in_date_order():
    guest = GuestCustomer(name="Ana", email="ana@example.com", phone="+56912345678")
    later = Booking(
        id="b3",
        service_id="1",
        date=date(2025, 8, 5),
        time=time(9, 0),
        status=BookingStatus.PENDING,
        customer=RegisteredCustomer(user_id="user-1"),
        created_at=NOW,
    )
    uc, _ = _use_case(
        [
            later,
            _booking("b2", BookingStatus.PENDING, at=time(15, 0)),
            _booking("b1", BookingStatus.CANCELLED, at=time(9, 30)),
            _booking("other", BookingStatus.PENDING, RegisteredCustomer(user_id="user-2"), time(11, 0)),
            _booking("guest", BookingStatus.PENDING, guest, time(12, 0)),
        ]
    )

    mine = asyncio.run(uc.customer_bookings("user-1"))

    assert [b.id for b in mine] == ["b1", "b2", "b3"]
    assert asyncio.run(uc.customer_bookings("nobody")) == []

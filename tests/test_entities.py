"""
Tests for the Booking and Service entities.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    GuestCustomer,
    InvalidBookingError,
    PaymentMethod,
    RegisteredCustomer,
)
from app.domain.entities.service import Service

NOW = datetime(2025, 8, 1, 10, 0, tzinfo=timezone.utc)


def _booking(**overrides) -> Booking:
    fields = dict(
        id="b1",
        service_id="1",
        date=date(2025, 8, 4),
        time=time(10, 0),
        status=BookingStatus.PENDING,
        customer=RegisteredCustomer(user_id="user-1"),
        created_at=NOW,
    )
    fields.update(overrides)
    return Booking(**fields)


def test_strings_are_coerced_to_enums():
    booking = _booking(status="confirmed", payment_method="transfer")

    assert booking.status is BookingStatus.CONFIRMED
    assert booking.payment_method is PaymentMethod.TRANSFER
    assert not booking.is_guest


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"service_id": " "},
        {"customer": None},
        {"customer": RegisteredCustomer(user_id="")},
        {"customer": GuestCustomer(name="Ana", email="", phone="+56912345678")},
        {"date": datetime(2025, 8, 4, 10, 0)},
        {"time": time(10, 0, 30)},
        {"created_at": datetime(2025, 8, 1, 10, 0)},
    ],
)
def test_invalid_bookings_are_rejected(overrides):
    with pytest.raises(InvalidBookingError):
        _booking(**overrides)


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        _booking(status="archived")


def test_with_status_returns_copy():
    booking = _booking()

    updated = booking.with_status(BookingStatus.CONFIRMED)

    assert booking.status == BookingStatus.PENDING
    assert updated.status == BookingStatus.CONFIRMED
    assert updated.id == booking.id


def test_service_price_is_decimal():
    service = Service(id="1", name="Reflexology", short_description="", price=28000, duration_minutes=30)

    assert service.price == Decimal("28000")


@pytest.mark.parametrize("price, duration", [(-1, 30), (100, 0)])
def test_service_rejects_negative_price_or_empty_duration(price, duration):
    with pytest.raises(ValueError):
        Service(id="1", name="x", short_description="", price=price, duration_minutes=duration)

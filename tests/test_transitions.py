"""
Tests for the booking status state machine.
"""

from __future__ import annotations

import itertools
from datetime import date, datetime, time, timezone

import pytest

from app.application.exceptions import InvalidTransition
from app.application.utils.transitions import (
    allowed_transitions,
    apply_transition,
    can_transition,
    is_terminal,
)
from app.domain.entities.booking import Booking, BookingStatus, RegisteredCustomer

ALLOWED = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED),
    (BookingStatus.PENDING, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
}


def _booking(status: BookingStatus) -> Booking:
    return Booking(
        id="b1",
        service_id="2",
        date=date(2025, 8, 4),
        time=time(10, 0),
        status=status,
        customer=RegisteredCustomer(user_id="user-1"),
        created_at=datetime(2025, 8, 1, 9, 0, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize("current,target", sorted(ALLOWED))
def test_allowed_transitions_succeed(current, target):
    booking = _booking(current)

    updated = apply_transition(booking, target)

    assert updated.status == target
    assert updated.id == booking.id
    assert updated.created_at == booking.created_at
    assert booking.status == current


@pytest.mark.parametrize(
    "current,target",
    [pair for pair in itertools.product(BookingStatus, BookingStatus) if pair not in ALLOWED],
)
def test_other_transitions_fail(current, target):
    with pytest.raises(InvalidTransition) as exc_info:
        apply_transition(_booking(current), target)

    assert exc_info.value.current == current.value
    assert exc_info.value.target == target.value


def test_terminal_states_have_no_exits():
    assert is_terminal(BookingStatus.CANCELLED)
    assert is_terminal(BookingStatus.COMPLETED)
    assert not is_terminal(BookingStatus.PENDING)
    assert allowed_transitions(BookingStatus.CANCELLED) == frozenset()


def test_can_transition_accepts_raw_values():
    assert can_transition(BookingStatus.PENDING, "confirmed")
    assert not can_transition(BookingStatus.PENDING, "completed")

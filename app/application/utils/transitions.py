from __future__ import annotations

from app.application.exceptions import InvalidTransition
from app.domain.entities.booking import Booking, BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def allowed_transitions(status: BookingStatus) -> frozenset[BookingStatus]:
    return ALLOWED_TRANSITIONS[BookingStatus(status)]


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in allowed_transitions(current)


def is_terminal(status: BookingStatus) -> bool:
    return not allowed_transitions(status)


def apply_transition(booking: Booking, target: BookingStatus) -> Booking:
    """Return a copy of booking in the target status, or raise InvalidTransition."""
    target = BookingStatus(target)
    if not can_transition(booking.status, target):
        allowed = tuple(sorted(s.value for s in allowed_transitions(booking.status)))
        raise InvalidTransition(booking.status.value, target.value, allowed)
    return booking.with_status(target)

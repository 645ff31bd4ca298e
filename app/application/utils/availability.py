from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, time

from app.domain.entities.booking import Booking, BookingStatus


@dataclass(frozen=True)
class SlotOccupancyPolicy:
    # Cancelled bookings keep their record but release the slot unless this is set.
    cancelled_blocks_slot: bool = False

    def occupies_slot(self, booking: Booking) -> bool:
        if booking.status == BookingStatus.CANCELLED:
            return self.cancelled_blocks_slot
        return True


def occupied_times(
    bookings: Iterable[Booking],
    booking_date: date,
    policy: SlotOccupancyPolicy = SlotOccupancyPolicy(),
) -> set[time]:
    return {
        booking.time
        for booking in bookings
        if booking.date == booking_date and policy.occupies_slot(booking)
    }


def available_slots(
    booking_date: date,
    candidate_slots: Sequence[time],
    bookings_on_date: Iterable[Booking],
    policy: SlotOccupancyPolicy = SlotOccupancyPolicy(),
) -> list[time]:
    """Remove every candidate slot already taken on booking_date. Keeps candidate order."""
    taken = occupied_times(bookings_on_date, booking_date, policy)
    return [slot for slot in candidate_slots if slot not in taken]


def is_slot_free(
    booking_date: date,
    slot: time,
    bookings_on_date: Iterable[Booking],
    policy: SlotOccupancyPolicy = SlotOccupancyPolicy(),
) -> bool:
    return slot not in occupied_times(bookings_on_date, booking_date, policy)

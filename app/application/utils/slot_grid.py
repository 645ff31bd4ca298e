from __future__ import annotations

import re
from datetime import time

from app.application.exceptions import InvalidConfiguration

_SLOT_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::00)?$")


def generate_slots(start_hour: int, end_hour: int, interval_minutes: int) -> list[time]:
    """
    Build the bookable time-of-day grid for a working day.
    Every multiple of interval_minutes from start_hour:00 up to, but excluding, end_hour:00.
    """
    if not 0 <= start_hour < end_hour <= 24:
        raise InvalidConfiguration(
            f"Working window must satisfy 0 <= start < end <= 24, got {start_hour}-{end_hour}"
        )
    if not 0 < interval_minutes <= 60:
        raise InvalidConfiguration(f"Slot interval must be within (0, 60] minutes, got {interval_minutes}")

    slots: list[time] = []
    minute_of_day = start_hour * 60
    end_minute = end_hour * 60
    while minute_of_day < end_minute:
        slots.append(time(hour=minute_of_day // 60, minute=minute_of_day % 60))
        minute_of_day += interval_minutes
    return slots


def format_slot(slot: time) -> str:
    return slot.strftime("%H:%M")


def parse_slot(text: str) -> time:
    """Parse "HH:MM" (or "HH:MM:00" as stored by the backend) into a time."""
    match = _SLOT_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Invalid slot time: {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    return time(hour=hour, minute=minute)

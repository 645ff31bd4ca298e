from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"


class InvalidBookingError(ValueError):
    """Raised when a Booking is constructed with inconsistent fields."""
    pass


@dataclass(frozen=True)
class RegisteredCustomer:
    user_id: str


@dataclass(frozen=True)
class GuestCustomer:
    name: str
    email: str
    phone: str


Customer = RegisteredCustomer | GuestCustomer


@dataclass(frozen=True)
class Booking:
    id: str
    service_id: str
    date: date
    time: time
    status: BookingStatus
    customer: Customer
    created_at: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    comments: str | None = None
    price: Decimal | None = None  # snapshot of the service price at booking time
    duration_minutes: int | None = None

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise InvalidBookingError("Booking id is required")
        if not self.service_id or not str(self.service_id).strip():
            raise InvalidBookingError("Booking service_id is required")
        if not isinstance(self.customer, (RegisteredCustomer, GuestCustomer)):
            raise InvalidBookingError(
                "Booking customer must be exactly one of RegisteredCustomer or GuestCustomer"
            )
        if isinstance(self.customer, RegisteredCustomer) and not self.customer.user_id:
            raise InvalidBookingError("Registered customer requires a user_id")
        if isinstance(self.customer, GuestCustomer) and not (
            self.customer.name and self.customer.email and self.customer.phone
        ):
            raise InvalidBookingError("Guest customer requires name, email and phone")
        if isinstance(self.date, datetime) or not isinstance(self.date, date):
            raise InvalidBookingError("Booking date must be a calendar date without time")
        if self.time.second or self.time.microsecond or self.time.tzinfo is not None:
            raise InvalidBookingError("Booking time must have minute precision")
        if self.created_at.tzinfo is None:
            raise InvalidBookingError("Booking created_at must be timezone-aware")
        if not isinstance(self.status, BookingStatus):
            object.__setattr__(self, "status", BookingStatus(self.status))
        if not isinstance(self.payment_method, PaymentMethod):
            object.__setattr__(self, "payment_method", PaymentMethod(self.payment_method))

    @property
    def is_guest(self) -> bool:
        return isinstance(self.customer, GuestCustomer)

    def with_status(self, status: BookingStatus) -> Booking:
        return replace(self, status=status)

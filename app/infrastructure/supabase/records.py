from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.application.utils.slot_grid import parse_slot
from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    GuestCustomer,
    PaymentMethod,
    RegisteredCustomer,
)
from app.domain.entities.service import Service


class BookingRecord(BaseModel):
    """Row shape of the bookings table."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    service_id: str
    booking_date: date = Field(alias="date")
    booking_time: time = Field(alias="time")
    status: BookingStatus
    user_id: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    comments: str | None = None
    price: Decimal | None = None
    duration_minutes: int | None = None
    created_at: datetime

    @field_validator("id", "service_id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value):
        return str(value) if value is not None else None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _date_only(cls, value):
        # Some rows carry a full timestamp; keep the YYYY-MM-DD part.
        if isinstance(value, str):
            return value[:10]
        return value

    @field_validator("booking_time", mode="before")
    @classmethod
    def _minute_precision(cls, value):
        if isinstance(value, str):
            return parse_slot(value[:5])
        return value

    def to_entity(self) -> Booking:
        if self.user_id and not any((self.guest_name, self.guest_email, self.guest_phone)):
            customer = RegisteredCustomer(user_id=self.user_id)
        elif not self.user_id:
            customer = GuestCustomer(
                name=self.guest_name or "",
                email=self.guest_email or "",
                phone=self.guest_phone or "",
            )
        else:
            customer = None  # both present; Booking rejects it
        return Booking(
            id=self.id,
            service_id=self.service_id,
            date=self.booking_date,
            time=self.booking_time,
            status=self.status,
            customer=customer,
            created_at=self.created_at,
            payment_method=self.payment_method,
            comments=self.comments,
            price=self.price,
            duration_minutes=self.duration_minutes,
        )

    @classmethod
    def from_entity(cls, booking: Booking) -> BookingRecord:
        customer = booking.customer
        return cls(
            id=booking.id,
            service_id=booking.service_id,
            booking_date=booking.date,
            booking_time=booking.time,
            status=booking.status,
            user_id=customer.user_id if isinstance(customer, RegisteredCustomer) else None,
            guest_name=customer.name if isinstance(customer, GuestCustomer) else None,
            guest_email=customer.email if isinstance(customer, GuestCustomer) else None,
            guest_phone=customer.phone if isinstance(customer, GuestCustomer) else None,
            payment_method=booking.payment_method,
            comments=booking.comments,
            price=booking.price,
            duration_minutes=booking.duration_minutes,
            created_at=booking.created_at,
        )

    def to_payload(self) -> dict:
        payload = self.model_dump(mode="json", by_alias=True)
        payload["time"] = self.booking_time.strftime("%H:%M")
        return payload


class ServiceRecord(BaseModel):
    """Row shape of the services table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    short_description: str = ""
    price: Decimal
    duration_minutes: int
    image_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value)

    def to_entity(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            short_description=self.short_description,
            price=self.price,
            duration_minutes=self.duration_minutes,
            image_url=self.image_url,
        )

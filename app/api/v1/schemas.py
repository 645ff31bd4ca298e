from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.application.utils.slot_grid import format_slot
from app.application.utils.weekly import WeeklyGrid
from app.domain.entities.booking import Booking, BookingStatus, GuestCustomer, PaymentMethod
from app.domain.entities.service import Service


class ServiceSchema(BaseModel):
    id: str
    name: str
    short_description: str
    price: Decimal
    duration_minutes: int
    image_url: str | None = None

    @classmethod
    def from_entity(cls, service: Service) -> ServiceSchema:
        return cls(
            id=service.id,
            name=service.name,
            short_description=service.short_description,
            price=service.price,
            duration_minutes=service.duration_minutes,
            image_url=service.image_url,
        )


class CustomerSchema(BaseModel):
    type: str  # "registered" | "guest"
    user_id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class BookingSchema(BaseModel):
    id: str
    service_id: str
    date: str
    time: str
    status: BookingStatus
    customer: CustomerSchema
    payment_method: PaymentMethod
    comments: str | None = None
    price: Decimal | None = None
    duration_minutes: int | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, booking: Booking) -> BookingSchema:
        if isinstance(booking.customer, GuestCustomer):
            customer = CustomerSchema(
                type="guest",
                name=booking.customer.name,
                email=booking.customer.email,
                phone=booking.customer.phone,
            )
        else:
            customer = CustomerSchema(type="registered", user_id=booking.customer.user_id)
        return cls(
            id=booking.id,
            service_id=booking.service_id,
            date=booking.date.isoformat(),
            time=format_slot(booking.time),
            status=booking.status,
            customer=customer,
            payment_method=booking.payment_method,
            comments=booking.comments,
            price=booking.price,
            duration_minutes=booking.duration_minutes,
            created_at=booking.created_at,
        )


class AvailabilitySchema(BaseModel):
    date: str
    slots: list[str]


class CreateBookingRequestSchema(BaseModel):
    service_id: str
    date: str
    time: str
    name: str = ""
    email: str = ""
    phone: str = ""
    payment_method: str | None = None
    comments: str | None = None


class WalkInRequestSchema(BaseModel):
    service_id: str
    date: str
    time: str
    user_id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    comments: str | None = Field(default=None, max_length=500)


class StatusChangeRequestSchema(BaseModel):
    status: BookingStatus


class CalendarCellSchema(BaseModel):
    date: str
    hour: int
    bookings: list[BookingSchema]


class WeeklyCalendarSchema(BaseModel):
    week_start: str
    week_end: str
    days: list[str]
    hours: list[int]
    is_empty: bool
    cells: list[CalendarCellSchema]

    @classmethod
    def from_grid(cls, grid: WeeklyGrid) -> WeeklyCalendarSchema:
        cells = [
            CalendarCellSchema(
                date=day.isoformat(),
                hour=hour,
                bookings=[BookingSchema.from_entity(b) for b in grid.cell(day, hour)],
            )
            for (day, hour) in sorted(grid.buckets)
        ]
        return cls(
            week_start=grid.window.start.isoformat(),
            week_end=grid.window.end.isoformat(),
            days=[day.isoformat() for day in grid.window.days()],
            hours=grid.hour_range.hours(),
            is_empty=grid.is_empty,
            cells=cells,
        )


def parse_iso_date(value: str) -> date:
    return date.fromisoformat(value)

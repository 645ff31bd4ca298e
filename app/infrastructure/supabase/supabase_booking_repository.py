from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import ValidationError

from app.application.exceptions import BookingNotFoundError, BookingRejectedError, SlotConflictError
from app.application.ports.booking_repository import BookingRepositoryPort
from app.domain.entities.booking import Booking, BookingStatus, InvalidBookingError
from app.infrastructure.supabase.records import BookingRecord
from app.infrastructure.supabase.supabase_client import SupabaseClient, SupabaseHTTPError

UNIQUE_VIOLATION = "23505"


class SupabaseBookingRepository(BookingRepositoryPort):
    """
    Bookings stored in a Supabase table.

    The table must carry a partial unique index on (date, time) for rows that
    occupy a slot, so concurrent inserts for the same slot fail with 409.
    """

    def __init__(self, client: SupabaseClient, table: str = "bookings") -> None:
        self._client = client
        self._table = table
        self._logger = logging.getLogger(__name__)

    def _to_bookings(self, rows: list[dict[str, Any]]) -> list[Booking]:
        bookings: list[Booking] = []
        for row in rows:
            try:
                bookings.append(BookingRecord.model_validate(row).to_entity())
            except (ValidationError, InvalidBookingError) as e:
                self._logger.warning(
                    "Skipping malformed booking row",
                    extra={"booking_id": row.get("id"), "reason": str(e)},
                )
                continue
        return bookings

    async def list_by_date_range(self, start: date, end: date) -> list[Booking]:
        rows = await self._client.select(
            self._table,
            [
                ("select", "*"),
                ("date", f"gte.{start.isoformat()}"),
                ("date", f"lte.{end.isoformat()}"),
                ("order", "date.asc,time.asc,created_at.asc"),
            ],
        )
        return self._to_bookings(rows)

    async def list_by_customer(self, user_id: str) -> list[Booking]:
        rows = await self._client.select(
            self._table,
            {"select": "*", "user_id": f"eq.{user_id}", "order": "date.asc,time.asc"},
        )
        return self._to_bookings(rows)

    async def get(self, booking_id: str) -> Booking | None:
        rows = await self._client.select(self._table, {"select": "*", "id": f"eq.{booking_id}"})
        bookings = self._to_bookings(rows)
        return bookings[0] if bookings else None

    async def insert(self, booking: Booking) -> Booking:
        payload = BookingRecord.from_entity(booking).to_payload()
        try:
            rows = await self._client.insert(self._table, payload)
        except SupabaseHTTPError as e:
            if e.status_code == 409 or e.code == UNIQUE_VIOLATION:
                raise SlotConflictError(booking.date, booking.time) from e
            raise BookingRejectedError(str(e), status_code=e.status_code, code=e.code) from e
        saved = self._to_bookings(rows)
        return saved[0] if saved else booking

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        try:
            rows = await self._client.update(
                self._table,
                {"id": f"eq.{booking_id}"},
                {"status": BookingStatus(status).value},
            )
        except SupabaseHTTPError as e:
            raise BookingRejectedError(str(e), status_code=e.status_code, code=e.code) from e
        bookings = self._to_bookings(rows)
        if not bookings:
            raise BookingNotFoundError(booking_id)
        return bookings[0]

    async def delete(self, booking_id: str) -> None:
        try:
            rows = await self._client.delete(self._table, {"id": f"eq.{booking_id}"})
        except SupabaseHTTPError as e:
            raise BookingRejectedError(str(e), status_code=e.status_code, code=e.code) from e
        if not rows:
            raise BookingNotFoundError(booking_id)

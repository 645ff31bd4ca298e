from __future__ import annotations

import logging
from datetime import date, time

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from app.api.v1.schemas import (
    AvailabilitySchema,
    BookingSchema,
    CreateBookingRequestSchema,
    ServiceSchema,
    StatusChangeRequestSchema,
    WalkInRequestSchema,
    WeeklyCalendarSchema,
    parse_iso_date,
)
from app.application.exceptions import (
    BookingNotFoundError,
    BookingRejectedError,
    BookingValidationError,
    InvalidTransition,
    RepositoryUnavailableError,
    SlotConflictError,
    WizardStateError,
)
from app.application.use_cases.availability import AvailabilityUseCase
from app.application.use_cases.list_services import ListServicesUseCase
from app.application.use_cases.manage_bookings import ManageBookingsUseCase
from app.application.use_cases.weekly_calendar import WeeklyCalendarUseCase
from app.application.utils.slot_grid import format_slot, parse_slot
from app.domain.entities.booking import GuestCustomer, InvalidBookingError, RegisteredCustomer
from app.domain.entities.identity import Identity
from app.infrastructure.identity.static_identity import StaticIdentityProvider
from app.wiring.dependencies import (
    build_booking_wizard,
    business_now,
    get_availability_use_case,
    get_list_services_use_case,
    get_manage_bookings_use_case,
    get_weekly_calendar_use_case,
)

router = APIRouter()
logger = logging.getLogger(__name__)

UNAVAILABLE_DETAIL = "The booking service is temporarily unavailable. Please retry."
REJECTED_STATUS = 502


def get_identity_provider(
    x_user_id: str | None = Header(None),
    x_user_name: str | None = Header(None),
    x_user_email: str | None = Header(None),
    x_user_phone: str | None = Header(None),
) -> StaticIdentityProvider:
    """Identity forwarded by the auth gateway in front of this service. No header means guest."""
    if not x_user_id:
        return StaticIdentityProvider()
    return StaticIdentityProvider(
        Identity(
            user_id=x_user_id,
            name=x_user_name or "",
            email=x_user_email or "",
            phone=x_user_phone or "",
        )
    )


def _parse_date_time(date_text: str, time_text: str) -> tuple[date, time]:
    try:
        return parse_iso_date(date_text), parse_slot(time_text)
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"errors": {"date_time": str(e)}})


@router.get("/services", response_model=list[ServiceSchema])
async def list_services(uc: ListServicesUseCase = Depends(get_list_services_use_case)):
    try:
        services = await uc.execute()
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return [ServiceSchema.from_entity(s) for s in services]


@router.get("/availability", response_model=AvailabilitySchema)
async def availability(
    booking_date: date = Query(..., alias="date"),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        day = await uc.for_date(booking_date)
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return AvailabilitySchema(date=booking_date.isoformat(), slots=[format_slot(s) for s in day.slots])


@router.post("/bookings", response_model=BookingSchema, status_code=201)
async def create_booking(
    req: CreateBookingRequestSchema,
    identity_provider: StaticIdentityProvider = Depends(get_identity_provider),
    calendar: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
):
    booking_date, booking_time = _parse_date_time(req.date, req.time)
    wizard = build_booking_wizard(identity_provider)
    try:
        await wizard.start()
        wizard.select_service(req.service_id)
        wizard.advance()
        await wizard.select_date(booking_date)
        wizard.select_time(booking_time)
        wizard.advance()
        if not wizard.contact_read_only:
            wizard.set_contact(req.name, req.email, req.phone)
        if req.payment_method is not None:
            wizard.set_payment_method(req.payment_method)
        wizard.set_comments(req.comments)
        wizard.advance()
        booking = await wizard.submit()
    except BookingValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": e.errors})
    except SlotConflictError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    except BookingRejectedError as e:
        raise HTTPException(status_code=REJECTED_STATUS, detail=e.user_message)
    except WizardStateError as e:
        raise HTTPException(status_code=400, detail=str(e))

    calendar.invalidate()
    return BookingSchema.from_entity(booking)


@router.get("/bookings/mine", response_model=list[BookingSchema])
async def my_bookings(
    x_user_id: str | None = Header(None),
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
):
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Sign in to see your bookings")
    try:
        bookings = await uc.customer_bookings(x_user_id)
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return [BookingSchema.from_entity(b) for b in bookings]


@router.get("/calendar/week", response_model=WeeklyCalendarSchema)
async def weekly_calendar(
    pivot: date | None = Query(None),
    uc: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
):
    try:
        grid = await uc.load(pivot or business_now().date())
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return WeeklyCalendarSchema.from_grid(grid)


@router.post("/bookings/{booking_id}/status", response_model=BookingSchema)
async def change_status(
    booking_id: str,
    req: StatusChangeRequestSchema,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
    calendar: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
):
    try:
        booking = await uc.change_status(booking_id, req.status)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(
            status_code=409,
            detail={"message": "Status change not allowed", "allowed": list(e.allowed)},
        )
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    except BookingRejectedError as e:
        raise HTTPException(status_code=REJECTED_STATUS, detail=e.user_message)
    calendar.invalidate()
    return BookingSchema.from_entity(booking)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingSchema)
async def cancel_booking(
    booking_id: str,
    x_user_id: str | None = Header(None),
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
    calendar: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
):
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Sign in to cancel a booking")
    try:
        booking = await uc.cancel_by_customer(booking_id, x_user_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(
            status_code=409,
            detail={"message": "This booking can no longer be cancelled", "allowed": list(e.allowed)},
        )
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    except BookingRejectedError as e:
        raise HTTPException(status_code=REJECTED_STATUS, detail=e.user_message)
    calendar.invalidate()
    return BookingSchema.from_entity(booking)


@router.delete("/bookings/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: str,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
    calendar: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
) -> Response:
    try:
        await uc.delete(booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    except BookingRejectedError as e:
        raise HTTPException(status_code=REJECTED_STATUS, detail=e.user_message)
    calendar.invalidate()
    return Response(status_code=204)


@router.post("/walk-ins", response_model=BookingSchema, status_code=201)
async def register_walk_in(
    req: WalkInRequestSchema,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
    services: ListServicesUseCase = Depends(get_list_services_use_case),
    calendar: WeeklyCalendarUseCase = Depends(get_weekly_calendar_use_case),
):
    booking_date, booking_time = _parse_date_time(req.date, req.time)
    try:
        catalog = {s.id: s for s in await services.execute()}
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    service = catalog.get(req.service_id)
    if service is None:
        raise HTTPException(status_code=422, detail={"errors": {"service_id": "Unknown service"}})

    if req.user_id:
        customer = RegisteredCustomer(user_id=req.user_id)
    else:
        customer = GuestCustomer(name=req.name or "", email=req.email or "", phone=req.phone or "")

    try:
        booking = await uc.register_walk_in(
            service,
            booking_date,
            booking_time,
            customer,
            payment_method=req.payment_method,
            comments=req.comments,
        )
    except SlotConflictError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    except (InvalidBookingError, ValueError) as e:
        raise HTTPException(status_code=422, detail={"errors": {"walk_in": str(e)}})
    except RepositoryUnavailableError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    except BookingRejectedError as e:
        raise HTTPException(status_code=REJECTED_STATUS, detail=e.user_message)
    calendar.invalidate()
    return BookingSchema.from_entity(booking)

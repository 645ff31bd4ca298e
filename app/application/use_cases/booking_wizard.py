from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum, IntEnum

from app.application.exceptions import (
    BookingRejectedError,
    BookingValidationError,
    RepositoryUnavailableError,
    SlotConflictError,
    WizardStateError,
)
from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.ports.identity_provider import IdentityProviderPort
from app.application.use_cases.availability import AvailabilityUseCase
from app.application.use_cases.list_services import ListServicesUseCase
from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    GuestCustomer,
    PaymentMethod,
    RegisteredCustomer,
)
from app.domain.entities.identity import Identity
from app.domain.entities.service import Service

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 8
MAX_COMMENTS_LENGTH = 500


class WizardStep(IntEnum):
    SERVICE = 1
    DATE_TIME = 2
    CONTACT = 3
    CONFIRM = 4
    SUCCESS = 5


class WizardErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    REJECTED = "rejected"


@dataclass(frozen=True)
class WizardError:
    kind: WizardErrorKind
    message: str
    retryable: bool = False
    fields: dict[str, str] | None = None


@dataclass(frozen=True)
class BookingDraft:
    service_id: str | None = None
    date: date | None = None
    time: time | None = None
    name: str = ""
    email: str = ""
    phone: str = ""
    payment_method: PaymentMethod | str | None = None
    comments: str | None = None


@dataclass(frozen=True)
class BookingSummary:
    service_name: str
    duration_minutes: int
    price: Decimal
    date: date
    time: time
    name: str
    email: str
    phone: str
    payment_method: PaymentMethod
    comments: str | None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_booking_id() -> str:
    return str(uuid.uuid4())


class BookingWizard:
    """
    Four-step capture of a new booking: service, date/time, contact/payment, confirmation.

    Each step only validates its own fields. Backward moves never drop data.
    Submission is a single awaited call; while it runs the wizard refuses to
    move or submit again. A successful submit leaves the wizard in SUCCESS,
    holding the booking that was stored.
    """

    def __init__(
        self,
        availability: AvailabilityUseCase,
        services: ListServicesUseCase,
        identity_provider: IdentityProviderPort,
        repository: BookingRepositoryPort,
        *,
        max_days_ahead: int = 30,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_booking_id,
        initial_status: BookingStatus = BookingStatus.PENDING,
    ) -> None:
        self._availability = availability
        self._services_use_case = services
        self._identity_provider = identity_provider
        self._repository = repository
        self._max_days_ahead = max_days_ahead
        self._clock = clock
        self._id_factory = id_factory
        self._initial_status = initial_status
        self._logger = logging.getLogger(__name__)

        self._services: dict[str, Service] = {}
        self._identity: Identity | None = None
        self._draft = BookingDraft()
        self._step = WizardStep.SERVICE
        self._available: list[time] = []
        self._available_for: date | None = None
        self._generation = 0
        self._submitting = False
        self._submitted: Booking | None = None
        self._submitted_summary: BookingSummary | None = None
        self._error: WizardError | None = None

    # -- state ---------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def services(self) -> list[Service]:
        return list(self._services.values())

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def contact_read_only(self) -> bool:
        return self._identity is not None

    @property
    def available_times(self) -> list[time]:
        return list(self._available)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def error(self) -> WizardError | None:
        return self._error

    @property
    def submitted(self) -> Booking | None:
        return self._submitted

    @property
    def submitted_summary(self) -> BookingSummary | None:
        return self._submitted_summary

    def today(self) -> date:
        return self._clock().date()

    def dismiss_error(self) -> None:
        self._error = None

    # -- loading -------------------------------------------------------------

    async def start(self) -> None:
        """Load the catalog and the signed-in identity, pre-filling contact fields."""
        try:
            services = await self._services_use_case.execute()
        except RepositoryUnavailableError:
            self._error = WizardError(
                WizardErrorKind.TRANSIENT,
                "We could not load the services. Please try again.",
                retryable=True,
            )
            raise
        self._services = {service.id: service for service in services}
        self._identity = await self._identity_provider.current_identity()
        self._prefill_contact()
        self._error = None

    def _prefill_contact(self) -> None:
        if self._identity is None:
            return
        self._draft = replace(
            self._draft,
            name=self._identity.name or "",
            email=self._identity.email or "",
            phone=self._identity.phone or "",
        )

    # -- field setters -------------------------------------------------------

    def select_service(self, service_id: str) -> None:
        self._ensure_editable()
        self._draft = replace(self._draft, service_id=service_id)

    async def select_date(self, booking_date: date) -> list[time]:
        """
        Pick a date, clear any chosen time and load that day's free slots.
        A load that finishes after a newer select_date call is discarded.
        """
        self._ensure_editable()
        self._draft = replace(self._draft, date=booking_date, time=None)
        self._available = []
        self._available_for = None
        self._generation += 1
        generation = self._generation

        if self._date_error(booking_date) is not None:
            return []

        try:
            day = await self._availability.for_date(booking_date)
        except RepositoryUnavailableError:
            if generation != self._generation:
                self._logger.info(
                    "Discarding stale availability failure",
                    extra={"date": booking_date.isoformat()},
                )
                return self.available_times
            self._error = WizardError(
                WizardErrorKind.TRANSIENT,
                "We could not load the available times. Please try again.",
                retryable=True,
            )
            raise

        if generation != self._generation:
            self._logger.info(
                "Discarding stale availability result",
                extra={"date": booking_date.isoformat()},
            )
            return self.available_times

        self._available = day.slots
        self._available_for = booking_date
        return self.available_times

    def select_time(self, slot: time) -> None:
        self._ensure_editable()
        self._draft = replace(self._draft, time=slot)

    def set_contact(self, name: str, email: str, phone: str) -> None:
        self._ensure_editable()
        if self.contact_read_only:
            raise WizardStateError("Contact details come from the signed-in account")
        self._draft = replace(self._draft, name=name, email=email, phone=phone)

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        self._ensure_editable()
        self._draft = replace(self._draft, payment_method=method)

    def set_comments(self, comments: str | None) -> None:
        self._ensure_editable()
        self._draft = replace(self._draft, comments=comments or None)

    # -- validation ----------------------------------------------------------

    def validate_step(self, step: WizardStep | None = None) -> dict[str, str]:
        step = WizardStep(step if step is not None else self._step)
        if step == WizardStep.SERVICE:
            return self._validate_service()
        if step == WizardStep.DATE_TIME:
            return self._validate_date_time()
        if step == WizardStep.CONTACT:
            return self._validate_contact()
        if step == WizardStep.CONFIRM:
            errors: dict[str, str] = {}
            errors.update(self._validate_service())
            errors.update(self._validate_date_time())
            errors.update(self._validate_contact())
            return errors
        return {}

    def can_advance(self, step: WizardStep | None = None) -> bool:
        return not self.validate_step(step)

    def _validate_service(self) -> dict[str, str]:
        service_id = self._draft.service_id
        if not service_id:
            return {"service_id": "Select a service"}
        if service_id not in self._services:
            return {"service_id": "Unknown service"}
        return {}

    def _date_error(self, booking_date: date | None) -> str | None:
        if booking_date is None:
            return "Select a date"
        today = self.today()
        if booking_date <= today:
            return "Date must be in the future"
        if booking_date > today + timedelta(days=self._max_days_ahead):
            return f"Date must be within {self._max_days_ahead} days"
        return None

    def _validate_date_time(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        date_error = self._date_error(self._draft.date)
        if date_error:
            errors["date"] = date_error
        if self._draft.time is None:
            errors["time"] = "Select a time"
        elif self._available_for != self._draft.date or self._draft.time not in self._available:
            errors["time"] = "Time is not available"
        return errors

    def _validate_contact(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        draft = self._draft
        if not self.contact_read_only:
            if len(draft.name.strip()) < MIN_NAME_LENGTH:
                errors["name"] = f"Name must have at least {MIN_NAME_LENGTH} characters"
            if not EMAIL_PATTERN.match(draft.email.strip()):
                errors["email"] = "Invalid email"
            if len(draft.phone.strip()) < MIN_PHONE_LENGTH:
                errors["phone"] = f"Phone must have at least {MIN_PHONE_LENGTH} characters"
        if self._payment_method() is None:
            errors["payment_method"] = "Select a payment method"
        if draft.comments and len(draft.comments) > MAX_COMMENTS_LENGTH:
            errors["comments"] = f"Comments must have at most {MAX_COMMENTS_LENGTH} characters"
        return errors

    def _payment_method(self) -> PaymentMethod | None:
        if self._draft.payment_method is None:
            return None
        try:
            return PaymentMethod(self._draft.payment_method)
        except ValueError:
            return None

    # -- navigation ----------------------------------------------------------

    def advance(self) -> WizardStep:
        self._ensure_editable()
        if self._step >= WizardStep.CONFIRM:
            raise WizardStateError("The confirmation step is completed by submit()")
        errors = self.validate_step(self._step)
        if errors:
            self._error = WizardError(WizardErrorKind.VALIDATION, "Please correct the highlighted fields", fields=errors)
            raise BookingValidationError(errors)
        self._error = None
        self._step = WizardStep(self._step + 1)
        return self._step

    def retreat(self) -> WizardStep:
        self._ensure_editable()
        if self._step > WizardStep.SERVICE:
            self._step = WizardStep(self._step - 1)
        return self._step

    def reset(self) -> None:
        """Start a new booking, keeping the loaded catalog and identity."""
        if self._submitting:
            raise WizardStateError("A submission is in progress")
        self._draft = BookingDraft()
        self._step = WizardStep.SERVICE
        self._available = []
        self._available_for = None
        self._generation += 1
        self._submitted = None
        self._submitted_summary = None
        self._error = None
        self._prefill_contact()

    def _ensure_editable(self) -> None:
        if self._submitting:
            raise WizardStateError("A submission is in progress")
        if self._step == WizardStep.SUCCESS:
            raise WizardStateError("The booking was already submitted")

    # -- confirmation --------------------------------------------------------

    def summary(self) -> BookingSummary:
        errors = self.validate_step(WizardStep.CONFIRM)
        if errors:
            raise BookingValidationError(errors)
        draft = self._draft
        service = self._services[draft.service_id]
        return BookingSummary(
            service_name=service.name,
            duration_minutes=service.duration_minutes,
            price=service.price,
            date=draft.date,
            time=draft.time,
            name=draft.name.strip(),
            email=draft.email.strip(),
            phone=draft.phone.strip(),
            payment_method=self._payment_method(),
            comments=draft.comments,
        )

    async def submit(self) -> Booking:
        if self._submitting:
            raise WizardStateError("A submission is in progress")
        if self._step == WizardStep.SUCCESS:
            raise WizardStateError("The booking was already submitted")
        if self._step != WizardStep.CONFIRM:
            raise WizardStateError("Complete the previous steps before submitting")

        errors = self.validate_step(WizardStep.CONFIRM)
        if errors:
            self._error = WizardError(WizardErrorKind.VALIDATION, "Please correct the highlighted fields", fields=errors)
            raise BookingValidationError(errors)

        summary = self.summary()
        booking = self._build_booking()
        self._submitting = True
        self._error = None
        try:
            saved = await self._persist(booking)
        except SlotConflictError as e:
            self._submitting = False
            await self._return_to_date_time(e)
            raise
        except RepositoryUnavailableError:
            self._error = WizardError(
                WizardErrorKind.TRANSIENT,
                "We could not save your booking. Please try again.",
                retryable=True,
            )
            self._logger.warning("Booking submission failed", extra={"booking_id": booking.id})
            raise
        except BookingRejectedError as e:
            self._error = WizardError(WizardErrorKind.REJECTED, BookingRejectedError.user_message)
            self._logger.error(
                "Booking rejected by backend",
                extra={"booking_id": booking.id, "reason": e.code or e.status_code},
            )
            raise
        finally:
            self._submitting = False

        self._submitted = saved
        self._submitted_summary = summary
        self._step = WizardStep.SUCCESS
        self._logger.info(
            "Booking created",
            extra={
                "booking_id": saved.id,
                "status": saved.status.value,
                "date": saved.date.isoformat(),
                "time": saved.time.strftime("%H:%M"),
            },
        )
        return saved

    async def _persist(self, booking: Booking) -> Booking:
        if not await self._availability.is_free(booking.date, booking.time):
            raise SlotConflictError(booking.date, booking.time)
        return await self._repository.insert(booking)

    async def _return_to_date_time(self, conflict: SlotConflictError) -> None:
        self._logger.info(
            "Slot taken before submit",
            extra={"date": str(conflict.booking_date), "time": str(conflict.booking_time)},
        )
        self._step = WizardStep.DATE_TIME
        booking_date = self._draft.date
        try:
            await self.select_date(booking_date)
        except RepositoryUnavailableError:
            self._logger.warning(
                "Could not refresh availability after conflict",
                extra={"date": booking_date.isoformat()},
            )
        self._error = WizardError(WizardErrorKind.CONFLICT, SlotConflictError.user_message)

    def _build_booking(self) -> Booking:
        draft = self._draft
        service = self._services[draft.service_id]
        if self._identity is not None:
            customer = RegisteredCustomer(user_id=self._identity.user_id)
        else:
            customer = GuestCustomer(
                name=draft.name.strip(),
                email=draft.email.strip(),
                phone=draft.phone.strip(),
            )
        return Booking(
            id=self._id_factory(),
            service_id=service.id,
            date=draft.date,
            time=draft.time,
            status=self._initial_status,
            customer=customer,
            created_at=self._clock(),
            payment_method=self._payment_method(),
            comments=draft.comments,
            price=service.price,
            duration_minutes=service.duration_minutes,
        )

from __future__ import annotations


class SchedulingContractError(RuntimeError):
    """Raised when a caller violates a scheduling contract (programming error)."""
    pass


class InvalidConfiguration(SchedulingContractError):
    """Raised when slot grid or calendar parameters are out of range."""
    pass


class InvalidTransition(SchedulingContractError):
    """Raised when a booking status change is not in the transition table."""

    def __init__(self, current: str, target: str, allowed: tuple[str, ...] = ()) -> None:
        super().__init__(f"Cannot move booking from {current!r} to {target!r}")
        self.current = current
        self.target = target
        self.allowed = allowed


class BookingValidationError(ValueError):
    """Raised when user-provided fields fail validation. Never reaches persistence."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = dict(errors)


class RepositoryUnavailableError(RuntimeError):
    """Raised when the persistence backend fails (timeouts, network errors, 5xx)."""

    retryable = True

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class SlotConflictError(RuntimeError):
    """Raised when the requested slot was taken between read and write."""

    user_message = "This time is no longer available. Please choose another time."

    def __init__(self, booking_date: object = None, booking_time: object = None) -> None:
        super().__init__(f"Slot {booking_date} {booking_time} is already booked")
        self.booking_date = booking_date
        self.booking_time = booking_time


class BookingRejectedError(RuntimeError):
    """Raised when the backend refuses a write for a reason other than a slot conflict."""

    user_message = "We could not save your booking. Please contact us to complete it."

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class BookingNotFoundError(LookupError):
    """Raised when a booking id does not exist."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id!r} not found")
        self.booking_id = booking_id


class WizardStateError(RuntimeError):
    """Raised when the booking wizard is driven out of order."""
    pass

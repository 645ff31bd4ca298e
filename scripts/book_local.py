#!/usr/bin/env python3
"""
Interactive local booking harness (no HTTP).

Usage:
  python3 scripts/book_local.py

What it does:
- Builds a BookingWizard through the same wiring the API uses
- Walks the four steps in the terminal: service, date/time, contact, confirm
- Prints validation, conflict and transient errors and asks again
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.application.exceptions import (  # noqa: E402
    BookingRejectedError,
    BookingValidationError,
    RepositoryUnavailableError,
    SlotConflictError,
)
from app.application.use_cases.booking_wizard import BookingWizard, WizardStep  # noqa: E402
from app.application.utils.slot_grid import format_slot, parse_slot  # noqa: E402
from app.wiring.dependencies import build_booking_wizard  # noqa: E402


class _Back(Exception):
    pass


def _ask(prompt: str) -> str:
    text = input(f"{prompt} ").strip()
    if text.lower() in ("/quit", "/exit"):
        raise SystemExit(0)
    if text.lower() == "/back":
        raise _Back()
    return text


def _print_errors(errors: dict[str, str]) -> None:
    for field, message in errors.items():
        print(f"  ! {field}: {message}")


def _pick_service(wizard: BookingWizard) -> None:
    print("\nServices:")
    for service in wizard.services:
        print(f"  [{service.id}] {service.name} ({service.duration_minutes} min, ${service.price})")
    wizard.select_service(_ask("Service id:"))


async def _pick_date_time(wizard: BookingWizard) -> None:
    text = _ask(f"Date (YYYY-MM-DD, after {wizard.today().isoformat()}):")
    try:
        picked = date.fromisoformat(text)
    except ValueError:
        print("  ! date: use YYYY-MM-DD")
        return
    slots = await wizard.select_date(picked)
    if not slots:
        print("  (no free times for that date)")
        return
    print("Free times: " + " ".join(format_slot(s) for s in slots))
    try:
        wizard.select_time(parse_slot(_ask("Time (HH:MM):")))
    except ValueError as e:
        print(f"  ! time: {e}")


def _fill_contact(wizard: BookingWizard) -> None:
    if wizard.contact_read_only:
        print(f"\nBooking as {wizard.draft.name} <{wizard.draft.email}>")
    else:
        wizard.set_contact(_ask("Name:"), _ask("Email:"), _ask("Phone:"))
    wizard.set_payment_method(_ask("Payment (cash/transfer):").lower())
    wizard.set_comments(_ask("Comments (optional):"))


async def _confirm(wizard: BookingWizard) -> None:
    summary = wizard.summary()
    print("\n--- Confirm ---")
    print(f"{summary.service_name}, {summary.duration_minutes} min, ${summary.price}")
    print(f"{summary.date.isoformat()} at {format_slot(summary.time)}")
    print(f"{summary.name} / {summary.email} / {summary.phone}")
    print(f"payment: {summary.payment_method.value}")
    if summary.comments:
        print(f"comments: {summary.comments}")
    if _ask("Submit? (y/n)").lower() != "y":
        raise _Back()
    booking = await wizard.submit()
    print(f"\nBooked! id={booking.id} status={booking.status.value}")


async def run(wizard: BookingWizard) -> None:
    await wizard.start()
    print("\nLocal Booking Harness")
    print("-" * 60)
    print("Commands: /back, /quit")

    while wizard.step != WizardStep.SUCCESS:
        try:
            if wizard.step == WizardStep.SERVICE:
                _pick_service(wizard)
                wizard.advance()
            elif wizard.step == WizardStep.DATE_TIME:
                await _pick_date_time(wizard)
                wizard.advance()
            elif wizard.step == WizardStep.CONTACT:
                _fill_contact(wizard)
                wizard.advance()
            else:
                await _confirm(wizard)
        except _Back:
            wizard.retreat()
        except BookingValidationError as e:
            _print_errors(e.errors)
        except SlotConflictError as e:
            print(f"  ! {e.user_message}")
        except BookingRejectedError as e:
            print(f"  ! {e.user_message}")
            return
        except RepositoryUnavailableError:
            print(f"  ! {wizard.error.message if wizard.error else 'Service unavailable, try again.'}")


def main() -> None:
    try:
        asyncio.run(run(build_booking_wizard()))
    except (EOFError, KeyboardInterrupt):
        print("\nBye!")


if __name__ == "__main__":
    main()

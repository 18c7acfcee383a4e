"""Walk-in booking status transitions.

``transition`` is the only code that assigns ``WalkInBooking.status``.
Session start/end, cancellation and the explicit status endpoint all go
through it.

    pending     -> in_progress, cancelled
    in_progress -> completed, cancelled
    completed   -> in_progress  (reopened by a new session)
"""
from __future__ import annotations

from datetime import date

from .errors import BookingStateError, BookingValidationError
from .models import BOOKING_STATUSES, WalkInBooking, utc_now

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"in_progress", "cancelled"}),
    "in_progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset({"in_progress"}),
    "cancelled": frozenset(),
}

CANCELLABLE = ("pending", "in_progress")
RESCHEDULABLE = ("pending", "in_progress")
ADDON_BLOCKED = ("completed", "cancelled")


def validate_status(value) -> str:
    if not isinstance(value, str) or value not in BOOKING_STATUSES:
        raise BookingValidationError(
            "Invalid status. Valid statuses: " + ", ".join(BOOKING_STATUSES),
            field="status",
        )
    return value


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def transition(booking: WalkInBooking, target: str) -> bool:
    """Move ``booking`` to ``target``.

    Returns False when the booking already has that status, True when it
    changed. Raises BookingStateError for an edge not in TRANSITIONS.
    """
    validate_status(target)
    if booking.status == target:
        return False
    if not can_transition(booking.status, target):
        raise BookingStateError(booking.status, target)
    booking.status = target
    booking.updated_at = utc_now()
    return True


def check_cancellable(booking: WalkInBooking, today: date) -> None:
    if booking.status not in CANCELLABLE:
        raise BookingStateError(
            booking.status,
            "cancelled",
            message="Booking cannot be cancelled (may already be completed or cancelled)",
        )
    if booking.booking_date != today:
        raise BookingStateError(
            booking.status,
            "cancelled",
            message="Only bookings made today can be cancelled",
        )


def check_reschedulable(booking: WalkInBooking, today: date) -> None:
    if booking.status not in RESCHEDULABLE:
        raise BookingStateError(
            booking.status,
            message=f"Cannot reschedule a {booking.status} booking",
        )
    if booking.booking_date != today:
        raise BookingStateError(
            booking.status,
            message="Only bookings made today can be rescheduled",
        )


def check_accepts_addons(booking: WalkInBooking) -> None:
    if booking.status in ADDON_BLOCKED:
        raise BookingStateError(
            booking.status,
            message=f"Cannot add services to {booking.status} booking",
        )

"""Grooming session timing for walk-in bookings."""
from __future__ import annotations

import math
from datetime import datetime

from flask import current_app

from . import state_machine
from .errors import BookingNotFoundError, BookingStateError, BookingValidationError, NoActiveSessionError
from .events import BookingEvent, EventKinds, dispatch_after_commit
from .extensions import db, unit_of_work
from .identity import STAFF_ROLES
from .models import GroomingSession, User, WalkInBooking, as_utc, utc_now


def load_booking(booking_id: int) -> WalkInBooking:
    booking = db.session.get(WalkInBooking, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    return booking


def session_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between ``start`` and ``end``, rounded half up."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(math.floor(seconds / 60 + 0.5), 0)


def open_session(booking: WalkInBooking, groomer_id: int, started_at: datetime | None = None) -> GroomingSession:
    """Attach a new active session to ``booking``. Caller owns the transaction."""
    session = GroomingSession(
        booking=booking,
        groomer_id=groomer_id,
        start_time=started_at or utc_now(),
        status="active",
    )
    db.session.add(session)
    return session


def close_session(session: GroomingSession, ended_at: datetime | None = None) -> GroomingSession:
    """Mark an active session completed and derive its duration."""
    end = ended_at or utc_now()
    session.end_time = end
    session.duration_minutes = session_minutes(session.start_time, end)
    session.status = "completed"
    return session


def load_groomer(groomer_id) -> User:
    """The staff account for ``groomer_id``; customers cannot groom."""
    if groomer_id in (None, "") or isinstance(groomer_id, bool):
        raise BookingValidationError("groomer_id is required", field="groomer_id")
    try:
        groomer_id = int(groomer_id)
    except (TypeError, ValueError):
        raise BookingValidationError("groomer_id must be an integer", field="groomer_id") from None
    groomer = db.session.get(User, groomer_id)
    if groomer is None or groomer.role not in STAFF_ROLES:
        raise BookingValidationError("Groomer not found", field="groomer_id")
    return groomer


def start_session(booking_id: int, groomer_id, actor=None, started_at: datetime | None = None) -> GroomingSession:
    """Open a timed session and move the booking to in_progress.

    A completed booking is reopened. Refused for cancelled bookings and
    while another session is still active.
    """
    groomer_id = load_groomer(groomer_id).user_id

    with unit_of_work():
        booking = load_booking(booking_id)
        if booking.active_session is not None:
            raise BookingStateError(
                booking.status,
                "in_progress",
                message="A grooming session is already active for this booking",
            )
        state_machine.transition(booking, "in_progress")
        session = open_session(booking, groomer_id, started_at)

    current_app.logger.info("Started grooming session %s for booking %s", session.session_id, booking_id)
    dispatch_after_commit(BookingEvent(
        EventKinds.SESSION_STARTED,
        booking_id,
        actor=actor,
        details={"summary": f"Started grooming session for booking #{booking_id}"},
    ))
    return session


def end_session(booking_id: int, actor=None, ended_at: datetime | None = None) -> GroomingSession:
    """Close the active session and complete the booking.

    Raises NoActiveSessionError without touching the booking when nothing
    is running.
    """
    with unit_of_work():
        booking = load_booking(booking_id)
        session = booking.active_session
        if session is None:
            raise NoActiveSessionError(booking_id)
        close_session(session, ended_at)
        state_machine.transition(booking, "completed")

    current_app.logger.info(
        "Completed grooming session %s for booking %s (%s min)",
        session.session_id,
        booking_id,
        session.duration_minutes,
    )
    dispatch_after_commit(BookingEvent(
        EventKinds.SESSION_COMPLETED,
        booking_id,
        actor=actor,
        details={"summary": f"Completed grooming session ({session.duration_minutes} minutes)"},
    ))
    return session


def session_details(booking_id: int) -> dict[str, object]:
    booking = load_booking(booking_id)
    active = booking.active_session
    return {
        "booking_id": booking.booking_id,
        "status": booking.status,
        "active_session": active.to_dict() if active else None,
        "sessions": [s.to_dict() for s in booking.sessions],
    }

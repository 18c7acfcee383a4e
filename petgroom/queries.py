"""Read-only lookups behind the staff and customer walk-in APIs."""
from __future__ import annotations

import math

from sqlalchemy import or_

from .conflicts import WALK_IN_ACTIVE_STATUSES, active_bookings_for_day, booked_time_slots
from .dates import business_today, business_yesterday
from .errors import BookingNotFoundError, BookingValidationError
from .identity import STAFF_ROLES
from .models import GroomingService, Pet, User, WalkInBooking
from .sessions import load_booking


def bookings_for_day(day) -> list[WalkInBooking]:
    return (
        WalkInBooking.query.filter(WalkInBooking.booking_date == day)
        .order_by(WalkInBooking.queue_number.asc())
        .all()
    )


def today_bookings() -> list[WalkInBooking]:
    return bookings_for_day(business_today())


def yesterday_bookings() -> list[WalkInBooking]:
    return bookings_for_day(business_yesterday())


def booking_history(status: str | None = None, limit: int = 100) -> list[WalkInBooking]:
    """Bookings from earlier business days, newest first."""
    query = WalkInBooking.query.filter(WalkInBooking.booking_date < business_today())
    if status:
        query = query.filter(WalkInBooking.status == status)
    return (
        query.order_by(WalkInBooking.booking_date.desc(), WalkInBooking.queue_number.asc())
        .limit(limit)
        .all()
    )


def booking_detail(booking_id: int) -> dict[str, object]:
    return load_booking(booking_id).to_detail_dict()


def active_appointments() -> list[dict[str, object]]:
    return [entry.to_dict() for entry in active_bookings_for_day(business_today())]


def booked_slots(day=None) -> list[str]:
    return sorted(booked_time_slots(day or business_today()))


def list_services() -> list[GroomingService]:
    return (
        GroomingService.query.filter_by(status="available")
        .order_by(GroomingService.category.asc(), GroomingService.name.asc())
        .all()
    )


def list_groomers() -> list[User]:
    return (
        User.query.filter(User.role.in_(STAFF_ROLES), User.status == "Active")
        .order_by(User.name.asc())
        .all()
    )


def search_owners(term: str, limit: int = 20) -> list[User]:
    query = User.query.filter(User.role == "pet_owner")
    term = (term or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.contact_number.ilike(pattern),
        ))
    return query.order_by(User.name.asc()).limit(limit).all()


def search_pets(term: str, owner_id: int | None = None, limit: int = 10) -> list[Pet]:
    """Customer-owned pets whose name contains ``term``."""
    term = (term or "").strip()
    if len(term) < 2:
        raise BookingValidationError("Search term must be at least 2 characters long", field="search")
    query = Pet.query.join(User, Pet.owner_id == User.user_id).filter(
        User.role == "pet_owner",
        Pet.name.ilike(f"%{term}%"),
    )
    if owner_id is not None:
        query = query.filter(Pet.owner_id == owner_id)
    return query.order_by(Pet.name.asc()).limit(limit).all()


def owner_pets(owner_id: int) -> list[Pet]:
    return Pet.query.filter_by(owner_id=owner_id).order_by(Pet.name.asc()).all()


# Customer side


def customer_bookings(owner_id: int) -> list[WalkInBooking]:
    return (
        WalkInBooking.query.filter_by(owner_id=owner_id)
        .order_by(WalkInBooking.created_at.desc())
        .all()
    )


def customer_today(owner_id: int) -> list[WalkInBooking]:
    return (
        WalkInBooking.query.filter_by(owner_id=owner_id, booking_date=business_today())
        .order_by(WalkInBooking.queue_number.asc())
        .all()
    )


def customer_history(owner_id: int, page: int = 1, limit: int = 10) -> dict[str, object]:
    """Finished or cancelled bookings, paginated."""
    if page < 1 or limit < 1:
        raise BookingValidationError("page and limit must be positive integers")
    query = WalkInBooking.query.filter(
        WalkInBooking.owner_id == owner_id,
        WalkInBooking.status.in_(("completed", "cancelled")),
    )
    total = query.count()
    bookings = (
        query.order_by(WalkInBooking.booking_date.desc(), WalkInBooking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "bookings": [b.to_dict() for b in bookings],
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalRecords": total,
            "hasMore": page < total_pages,
        },
    }


def customer_booking(owner_id: int, booking_id: int) -> WalkInBooking:
    """A booking owned by ``owner_id``; other owners' bookings read as missing."""
    booking = WalkInBooking.query.filter_by(booking_id=booking_id, owner_id=owner_id).first()
    if booking is None:
        raise BookingNotFoundError(booking_id)
    return booking


def customer_active_status(owner_id: int) -> dict[str, object]:
    active = (
        WalkInBooking.query.filter(
            WalkInBooking.owner_id == owner_id,
            WalkInBooking.booking_date == business_today(),
            WalkInBooking.status.in_(WALK_IN_ACTIVE_STATUSES),
        )
        .order_by(WalkInBooking.queue_number.asc())
        .all()
    )
    return {
        "has_active_booking": bool(active),
        "active_bookings": [b.to_dict() for b in active],
    }

"""Customer ratings for completed walk-in bookings."""
from __future__ import annotations

from flask import current_app

from .errors import AlreadyRatedError, BookingStateError, BookingValidationError
from .extensions import unit_of_work
from .models import WalkInRating
from .queries import customer_booking

# request key -> column
ASPECTS = {
    "staff": "staff_friendliness",
    "service": "service_quality",
    "cleanliness": "cleanliness",
    "value": "value_for_money",
}


def _stars(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise BookingValidationError(f"{field} must be between 1 and 5", field=field)
    return value


def submit_rating(customer_id: int, booking_id: int, payload: dict) -> WalkInRating:
    """Rate a completed booking once."""
    rating_value = _stars(payload.get("rating"), "rating")
    aspects = payload.get("aspects") or {}
    if not isinstance(aspects, dict):
        raise BookingValidationError("aspects must be an object", field="aspects")
    columns = {
        column: _stars(aspects[key], f"aspects.{key}")
        for key, column in ASPECTS.items()
        if aspects.get(key) is not None
    }
    review = payload.get("review")
    review = (review.strip() or None) if isinstance(review, str) else None

    with unit_of_work() as session:
        booking = customer_booking(customer_id, booking_id)
        if booking.status != "completed":
            raise BookingStateError(booking.status, message="Only completed bookings can be rated")
        if booking.rating is not None:
            raise AlreadyRatedError(booking_id)
        rating = WalkInRating(
            booking_id=booking.booking_id,
            customer_id=customer_id,
            rating=rating_value,
            review=review,
            **columns,
        )
        session.add(rating)

    current_app.logger.info("Customer %s rated walk-in booking %s (%s stars)", customer_id, booking_id, rating_value)
    return rating

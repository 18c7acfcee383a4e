"""Money invariants checked before booking writes commit."""
from __future__ import annotations

from decimal import Decimal

from .errors import TotalMismatchError
from .extensions import db
from .models import WalkInBooking


def expected_total(booking: WalkInBooking) -> Decimal:
    return booking.lines_total() + Decimal(booking.matted_coat_fee or 0)


def assert_totals(booking: WalkInBooking) -> None:
    """Raise TotalMismatchError unless total == sum of line prices + fee."""
    db.session.flush()
    expected = expected_total(booking)
    if Decimal(booking.total_amount) != expected:
        raise TotalMismatchError(booking.booking_id, booking.total_amount, expected)

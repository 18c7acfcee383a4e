"""Per-day queue numbering for walk-in bookings.

Numbers are read as max+1 and the (booking_date, queue_number) unique
constraint rejects a duplicate claimed concurrently. Callers retry the whole
transaction with ``allocate_with_retry``.
"""
from __future__ import annotations

from datetime import date
from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from .errors import QueueAllocationError
from .extensions import db
from .models import WalkInBooking

T = TypeVar("T")


def next_queue_number(booking_date: date) -> int:
    """Highest queue number issued for ``booking_date`` plus one."""
    current = (
        db.session.query(func.max(WalkInBooking.queue_number))
        .filter(WalkInBooking.booking_date == booking_date)
        .scalar()
    )
    return (current or 0) + 1


def queue_number_taken(booking_date: date, queue_number: int) -> bool:
    return db.session.query(
        WalkInBooking.query.filter_by(booking_date=booking_date, queue_number=queue_number).exists()
    ).scalar()


def allocate_with_retry(booking_date: date, attempt_fn: Callable[[int], T]) -> T:
    """Run ``attempt_fn(queue_number)`` until it commits without a queue clash.

    ``attempt_fn`` must run its own unit of work so a clash leaves nothing
    behind. Integrity errors unrelated to the queue number propagate.
    """
    attempts = current_app.config.get("QUEUE_ALLOCATION_RETRIES", 5)
    for attempt in range(1, attempts + 1):
        queue_number = next_queue_number(booking_date)
        try:
            return attempt_fn(queue_number)
        except IntegrityError:
            if not queue_number_taken(booking_date, queue_number):
                raise
            current_app.logger.warning(
                "Queue number %s for %s already taken (attempt %s/%s)",
                queue_number,
                booking_date,
                attempt,
                attempts,
            )
    raise QueueAllocationError(booking_date, attempts)

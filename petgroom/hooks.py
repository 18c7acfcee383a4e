"""Default post-commit hooks: owner notifications and the activity log."""
from __future__ import annotations

from .events import BookingEvent, EventKinds
from .extensions import db
from .models import ActivityLog, Notification, WalkInBooking


def _services_text(booking: WalkInBooking) -> str:
    names = [line.service.name for line in booking.lines if line.service]
    return ", ".join(names) if names else "grooming service"


def _owner_message(event: BookingEvent, booking: WalkInBooking) -> tuple[str, str] | None:
    pet = booking.pet.name if booking.pet else "your pet"
    if event.kind == EventKinds.CREATED:
        return (
            "Walk-In Booking Created",
            f"Your walk-in booking for {pet} has been created! "
            f"Queue #{booking.queue_number} - Services: {_services_text(booking)}",
        )
    if event.kind == EventKinds.RESCHEDULED:
        return (
            "Walk-In Service Rescheduled",
            f"Your walk-in service for {pet} has been rescheduled to {booking.time_slot}.",
        )
    if event.kind == EventKinds.CANCELLED:
        refund = " A refund will be processed." if booking.refund_eligible else ""
        return "Walk-In Service Cancelled", f"Your walk-in service for {pet} has been cancelled.{refund}"
    if event.kind == EventKinds.SESSION_STARTED:
        return (
            "Walk-In Service Started",
            f"Your walk-in grooming service for {pet} has started! Queue #{booking.queue_number}",
        )
    if event.kind in (EventKinds.SESSION_COMPLETED, EventKinds.COMPLETED):
        return (
            "Walk-In Service Completed",
            f"Your walk-in grooming service for {pet} has been completed! Your pet is ready for pickup.",
        )
    return None


def notify_owner(event: BookingEvent) -> None:
    """Store an in-app notification for the pet owner."""
    booking = db.session.get(WalkInBooking, event.booking_id)
    if booking is None:
        return
    message = _owner_message(event, booking)
    if message is None:
        return

    title, body = message
    db.session.add(Notification(
        user_id=booking.owner_id,
        walk_in_booking_id=booking.booking_id,
        title=title,
        message=body,
        notification_type="walk_in",
    ))
    db.session.commit()


# action tag, target type
_ACTIVITY = {
    EventKinds.CREATED: ("walk_in_create", "walk_in"),
    EventKinds.RESCHEDULED: ("walk_in_update", "walk_in"),
    EventKinds.CANCELLED: ("walk_in_cancel", "walk_in"),
    EventKinds.COMPLETED: ("walk_in_complete", "walk_in"),
    EventKinds.SESSION_STARTED: ("started", "grooming_session"),
    EventKinds.SESSION_COMPLETED: ("completed", "grooming_session"),
    EventKinds.ADDONS_ADDED: ("added", "booking_services"),
    EventKinds.GROOMER_CHANGED: ("updated", "walk_in_booking_groomer"),
    EventKinds.PHOTOS_UPLOADED: ("uploaded", "grooming_photos"),
}


def record_activity(event: BookingEvent) -> None:
    """Append an audit entry for actions taken by an identified user."""
    if event.actor is None or event.kind not in _ACTIVITY:
        return

    action, target_type = _ACTIVITY[event.kind]
    target = f"Booking #{event.booking_id}"
    if event.kind == EventKinds.CREATED:
        booking = db.session.get(WalkInBooking, event.booking_id)
        if booking is not None and booking.pet is not None:
            target = f"Queue #{booking.queue_number} - {booking.pet.name}"

    db.session.add(ActivityLog(
        actor_id=event.actor.user_id,
        actor_role=event.actor.role,
        action=action,
        target_type=target_type,
        target=target,
        details=event.details.get("summary"),
    ))
    db.session.commit()

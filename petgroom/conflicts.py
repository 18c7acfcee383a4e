"""Same-day active booking checks across walk-ins and scheduled appointments."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from .dates import normalize_time_slot, slot_sort_key
from .models import Appointment, WalkInBooking

ACTIVE_STATUSES = ("pending", "confirmed", "in_progress")
# Walk-ins have no confirmed state; the status enum rejects unknown values.
WALK_IN_ACTIVE_STATUSES = ("pending", "in_progress")


@dataclass(frozen=True)
class ActiveBooking:
    """A booking that keeps a pet (and its time slot) busy for the day."""

    id: int
    booking_type: str  # walk_in | appointment
    pet_id: int
    pet_name: str | None
    status: str
    date: str
    time: str | None
    service: str | None

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["type"] = payload.pop("booking_type")
        return payload


def _walk_in_entry(booking: WalkInBooking) -> ActiveBooking:
    first_line = booking.lines[0] if booking.lines else None
    return ActiveBooking(
        id=booking.booking_id,
        booking_type="walk_in",
        pet_id=booking.pet_id,
        pet_name=booking.pet.name if booking.pet else None,
        status=booking.status,
        date=booking.booking_date.isoformat(),
        time=booking.time_slot,
        service=first_line.service.name if first_line and first_line.service else None,
    )


def _appointment_entry(appointment: Appointment) -> ActiveBooking:
    return ActiveBooking(
        id=appointment.appointment_id,
        booking_type="appointment",
        pet_id=appointment.pet_id,
        pet_name=appointment.pet.name if appointment.pet else None,
        status=appointment.status,
        date=appointment.preferred_date.isoformat(),
        time=appointment.preferred_time,
        service=appointment.service.name if appointment.service else None,
    )


def active_bookings_for_day(day: date, pet_id: int | None = None) -> list[ActiveBooking]:
    """Active appointments and walk-ins for ``day``, ordered by time."""
    appointments = Appointment.query.filter(
        Appointment.preferred_date == day,
        Appointment.status.in_(ACTIVE_STATUSES),
    )
    walk_ins = WalkInBooking.query.filter(
        WalkInBooking.booking_date == day,
        WalkInBooking.status.in_(WALK_IN_ACTIVE_STATUSES),
    )
    if pet_id is not None:
        appointments = appointments.filter(Appointment.pet_id == pet_id)
        walk_ins = walk_ins.filter(WalkInBooking.pet_id == pet_id)

    entries = [_appointment_entry(a) for a in appointments.all()]
    entries.extend(_walk_in_entry(b) for b in walk_ins.order_by(WalkInBooking.queue_number).all())
    return sorted(entries, key=lambda entry: slot_sort_key(entry.time))


def find_active_booking(pet_id: int, day: date) -> ActiveBooking | None:
    """The booking blocking ``pet_id`` on ``day``, if any."""
    entries = active_bookings_for_day(day, pet_id=pet_id)
    return entries[0] if entries else None


def has_active_booking(pet_id: int, day: date) -> bool:
    return find_active_booking(pet_id, day) is not None


def booked_time_slots(day: date, exclude_booking_id: int | None = None) -> set[str]:
    """Normalized time slots held on ``day`` by either booking type."""
    slots = {
        normalize_time_slot(a.preferred_time)
        for a in Appointment.query.filter(
            Appointment.preferred_date == day,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
    }
    walk_ins = WalkInBooking.query.filter(
        WalkInBooking.booking_date == day,
        WalkInBooking.status.in_(WALK_IN_ACTIVE_STATUSES),
    )
    if exclude_booking_id is not None:
        walk_ins = walk_ins.filter(WalkInBooking.booking_id != exclude_booking_id)
    slots.update(normalize_time_slot(b.time_slot) for b in walk_ins)
    return slots

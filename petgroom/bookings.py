"""Walk-in booking workflows.

Every workflow validates its input before touching the store, runs its
writes inside one ``unit_of_work`` and hands post-commit events to the
registered hooks only after the commit succeeded.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from . import state_machine
from .conflicts import booked_time_slots, find_active_booking
from .dates import business_today, normalize_time_slot
from .errors import (
    ActiveBookingConflictError,
    AlreadyAppliedError,
    BookingStateError,
    BookingValidationError,
    NothingToAddError,
    PetNotFoundError,
    PriceMismatchError,
    TimeSlotTakenError,
)
from .events import BookingEvent, EventKinds, dispatch_after_commit
from .extensions import db, unit_of_work
from .invariants import assert_totals
from .models import (
    CANCELLED_BY,
    PAYMENT_METHODS,
    BookingServiceLine,
    PaymentRecord,
    Pet,
    WalkInBooking,
    utc_now,
)
from .pricing import ZERO, load_available_service, normalize_size, parse_amount, resolve_price
from .queueing import allocate_with_retry
from .sessions import close_session, load_booking, load_groomer, open_session

REQUIRED_CREATE_FIELDS = ("pet_id", "owner_id", "groomer_id", "time_slot", "payment_method")


def _as_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise BookingValidationError(f"{field} must be an integer", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BookingValidationError(f"{field} must be an integer", field=field) from None


def _service_ids(value, field: str = "service_ids") -> list[int]:
    """Parse a list of service ids, dropping repeats but keeping order."""
    if not isinstance(value, list):
        raise BookingValidationError(f"{field} must be an array", field=field)
    ids: list[int] = []
    for raw in value:
        service_id = _as_int(raw, field)
        if service_id not in ids:
            ids.append(service_id)
    return ids


def _payment_method(value) -> str:
    if value not in PAYMENT_METHODS:
        raise BookingValidationError(
            "Invalid payment method. Must be " + " or ".join(PAYMENT_METHODS),
            field="payment_method",
        )
    return value


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def create_walk_in_booking(payload: dict, actor=None) -> WalkInBooking:
    """Create a same-day booking with its service lines and initial payment."""
    missing = [name for name in REQUIRED_CREATE_FIELDS if payload.get(name) in (None, "")]
    if missing or "service_ids" not in payload:
        raise BookingValidationError(
            "Missing required fields",
            details={"missing": missing + ([] if "service_ids" in payload else ["service_ids"])},
        )
    service_ids = _service_ids(payload["service_ids"])
    if not service_ids:
        raise BookingValidationError("At least one service must be selected", field="service_ids")
    payment_method = _payment_method(payload["payment_method"])
    pet_id = _as_int(payload["pet_id"], "pet_id")
    owner_id = _as_int(payload["owner_id"], "owner_id")
    groomer_id = _as_int(payload["groomer_id"], "groomer_id")
    time_slot = normalize_time_slot(str(payload["time_slot"]))
    if not time_slot:
        raise BookingValidationError("time_slot is required", field="time_slot")
    fee = parse_amount(payload.get("matted_coat_fee") or 0, "matted_coat_fee")

    pet = db.session.get(Pet, pet_id)
    if pet is None:
        raise PetNotFoundError(pet_id)
    if pet.owner_id != owner_id:
        raise BookingValidationError("Pet does not belong to this owner", field="pet_id")
    load_groomer(groomer_id)

    today = business_today()
    conflict = find_active_booking(pet_id, today)
    if conflict is not None:
        current_app.logger.warning(
            "Rejected walk-in for pet %s: active %s #%s", pet_id, conflict.booking_type, conflict.id
        )
        raise ActiveBookingConflictError(conflict)

    size = normalize_size(pet.size)
    priced = []
    for service_id in service_ids:
        service = load_available_service(service_id)
        priced.append((service, resolve_price(service, size)))
    lines_total = sum((price for _, price in priced), ZERO)

    if payload.get("base_price") in (None, ""):
        base_price = lines_total
    else:
        base_price = parse_amount(payload["base_price"], "base_price")
        if base_price != lines_total:
            raise PriceMismatchError(base_price, lines_total)
    total = base_price + fee

    def attempt(queue_number: int) -> WalkInBooking:
        with unit_of_work():
            booking = WalkInBooking(
                pet_id=pet_id,
                owner_id=owner_id,
                groomer_id=groomer_id,
                status="pending",
                booking_date=today,
                queue_number=queue_number,
                time_slot=time_slot,
                base_price=base_price,
                matted_coat_fee=fee,
                total_amount=total,
                payment_method=payment_method,
                payment_status="paid",
                special_notes=_text(payload.get("special_notes")) or None,
            )
            db.session.add(booking)
            lines = [
                BookingServiceLine(booking=booking, service=service, price=price, is_addon=False)
                for service, price in priced
            ]
            db.session.add_all(lines)
            db.session.add(PaymentRecord(
                booking=booking,
                payment_method=payment_method,
                amount=total,
                payment_type="initial",
                covers_matted_coat_fee=fee > ZERO,
                covered_lines=lines,
            ))
            assert_totals(booking)
        return booking

    booking = allocate_with_retry(today, attempt)
    current_app.logger.info(
        "Created walk-in booking %s (queue #%s, total %s)",
        booking.booking_id,
        booking.queue_number,
        booking.total_amount,
    )
    dispatch_after_commit(BookingEvent(
        EventKinds.CREATED,
        booking.booking_id,
        actor=actor,
        details={"summary": f"Created walk-in booking for {pet.name} with {len(priced)} service(s)"},
    ))
    return booking


def add_services_to_booking(
    booking_id: int,
    service_ids=None,
    payment_method=None,
    add_matted_coat_fee: bool = False,
    matted_coat_fee_amount=None,
    actor=None,
) -> dict[str, object]:
    """Append add-on services and/or the matted-coat fee to a booking.

    Services already on the booking are skipped. One addon payment covers
    everything added by the call.
    """
    requested = _service_ids(service_ids) if service_ids is not None else []
    add_fee = bool(add_matted_coat_fee)
    if not requested and not add_fee:
        raise BookingValidationError("Please select services to add or apply matted coat fee")
    payment_method = _payment_method(payment_method)
    if add_fee:
        if matted_coat_fee_amount in (None, ""):
            fee = parse_amount(current_app.config["MATTED_COAT_DEFAULT_FEE"], "matted_coat_fee_amount")
        else:
            fee = parse_amount(matted_coat_fee_amount, "matted_coat_fee_amount")
        if fee <= ZERO:
            raise BookingValidationError("matted_coat_fee_amount must be greater than 0", field="matted_coat_fee_amount")

    with unit_of_work():
        booking = load_booking(booking_id)
        state_machine.check_accepts_addons(booking)
        if add_fee and Decimal(booking.matted_coat_fee or 0) > ZERO:
            raise AlreadyAppliedError()

        size = normalize_size(booking.pet.size)
        existing = {line.service_id for line in booking.lines}
        new_lines = []
        for service_id in requested:
            if service_id in existing:
                continue
            service = load_available_service(service_id)
            line = BookingServiceLine(
                booking=booking,
                service=service,
                price=resolve_price(service, size),
                is_addon=True,
            )
            db.session.add(line)
            new_lines.append(line)
        if not new_lines and not add_fee:
            raise NothingToAddError()

        subtotal = sum((line.price for line in new_lines), ZERO)
        fee_added = ZERO
        if add_fee:
            booking.matted_coat_fee = fee
            fee_added = fee
            subtotal += fee

        if subtotal > ZERO:
            db.session.add(PaymentRecord(
                booking=booking,
                payment_method=payment_method,
                amount=subtotal,
                payment_type="addon",
                covers_matted_coat_fee=add_fee,
                covered_lines=new_lines,
            ))
            booking.total_amount = Decimal(booking.total_amount) + subtotal
        booking.updated_at = utc_now()
        assert_totals(booking)

    result = {
        "booking_id": booking_id,
        "services_added": len(new_lines),
        "added_services": [line.to_dict() for line in new_lines],
        "matted_coat_fee_added": float(fee_added),
        "addon_total": float(subtotal),
        "new_total": float(booking.total_amount),
    }
    current_app.logger.info(
        "Added %s service(s) to walk-in booking %s, new total %s",
        len(new_lines),
        booking_id,
        result["new_total"],
    )
    summary = f"Added {len(new_lines)} service(s)"
    if add_fee:
        summary += f" and matted coat fee {fee_added}"
    dispatch_after_commit(BookingEvent(
        EventKinds.ADDONS_ADDED, booking_id, actor=actor, details={"summary": summary}
    ))
    return result


def reschedule_time_slot(booking_id: int, time_slot, reason, actor=None) -> WalkInBooking:
    """Move a booking to another slot of its own day."""
    target = normalize_time_slot(time_slot) if isinstance(time_slot, str) else ""
    if not target:
        raise BookingValidationError("time_slot is required", field="time_slot")
    reason = _text(reason)
    min_length = current_app.config["MIN_RESCHEDULE_REASON_LENGTH"]
    if len(reason) < min_length:
        raise BookingValidationError(
            f"Reschedule reason must be at least {min_length} characters long",
            field="reschedule_reason",
        )

    with unit_of_work():
        booking = load_booking(booking_id)
        state_machine.check_reschedulable(booking, business_today())
        if target != normalize_time_slot(booking.time_slot):
            if target in booked_time_slots(booking.booking_date, exclude_booking_id=booking.booking_id):
                raise TimeSlotTakenError(target)
        booking.time_slot = target
        booking.reschedule_reason = reason
        booking.updated_at = utc_now()

    current_app.logger.info("Rescheduled walk-in booking %s to %s", booking_id, target)
    dispatch_after_commit(BookingEvent(
        EventKinds.RESCHEDULED,
        booking_id,
        actor=actor,
        details={"summary": f"Rescheduled to {target}: {reason}"},
    ))
    return booking


def update_groomer(booking_id: int, groomer_id, reason=None, actor=None) -> WalkInBooking:
    groomer = load_groomer(groomer_id)

    with unit_of_work():
        booking = load_booking(booking_id)
        if booking.status == "cancelled":
            raise BookingStateError(booking.status, message="Cannot change the groomer of a cancelled booking")
        booking.groomer_id = groomer.user_id
        booking.groomer_change_reason = _text(reason) or None
        active = booking.active_session
        if active is not None:
            active.groomer_id = groomer.user_id
        booking.updated_at = utc_now()

    dispatch_after_commit(BookingEvent(
        EventKinds.GROOMER_CHANGED,
        booking_id,
        actor=actor,
        details={"summary": f"Groomer changed to {groomer.name}"},
    ))
    return booking


def _cancellation_fields(reason, cancelled_by, refund_eligible) -> tuple[str, str, bool]:
    reason = _text(reason)
    if not reason:
        raise BookingValidationError("Cancellation reason is required", field="cancellation_reason")
    if cancelled_by not in CANCELLED_BY:
        raise BookingValidationError(
            "cancelled_by must be one of: " + ", ".join(CANCELLED_BY),
            field="cancelled_by",
        )
    if refund_eligible is None:
        refund_eligible = False
    if not isinstance(refund_eligible, bool):
        raise BookingValidationError("refund_eligible must be a boolean", field="refund_eligible")
    return reason, cancelled_by, refund_eligible


def cancel_booking(booking_id: int, reason, cancelled_by, refund_eligible=None, actor=None) -> WalkInBooking:
    """Cancel a pending or in-progress booking made today.

    Any running session is closed first.
    """
    reason, cancelled_by, refund_eligible = _cancellation_fields(reason, cancelled_by, refund_eligible)

    with unit_of_work():
        booking = load_booking(booking_id)
        state_machine.check_cancellable(booking, business_today())
        active = booking.active_session
        if active is not None:
            close_session(active)
        state_machine.transition(booking, "cancelled")
        booking.cancellation_reason = reason
        booking.cancelled_by = cancelled_by
        booking.refund_eligible = refund_eligible

    current_app.logger.info("Cancelled walk-in booking %s (by %s)", booking_id, cancelled_by)
    dispatch_after_commit(BookingEvent(
        EventKinds.CANCELLED,
        booking_id,
        actor=actor,
        details={"summary": f"Cancelled by {cancelled_by}: {reason}"},
    ))
    return booking


def update_status(booking_id: int, status, payload: dict | None = None, actor=None) -> WalkInBooking:
    """Explicit status change, kept in step with the booking's sessions."""
    target = state_machine.validate_status(status)
    payload = payload or {}
    if target == "cancelled":
        return cancel_booking(
            booking_id,
            payload.get("cancellation_reason"),
            payload.get("cancelled_by"),
            payload.get("refund_eligible"),
            actor=actor,
        )

    with unit_of_work():
        booking = load_booking(booking_id)
        changed = state_machine.transition(booking, target)
        if changed and target == "in_progress" and booking.active_session is None:
            open_session(booking, booking.groomer_id)
        elif changed and target == "completed" and booking.active_session is not None:
            close_session(booking.active_session)

    if changed:
        current_app.logger.info("Walk-in booking %s moved to %s", booking_id, target)
        kind = EventKinds.COMPLETED if target == "completed" else EventKinds.SESSION_STARTED
        dispatch_after_commit(BookingEvent(
            kind, booking_id, actor=actor, details={"summary": f"Status changed to {target}"}
        ))
    return booking


def record_photos(booking_id: int, before_photo=None, after_photo=None, actor=None) -> WalkInBooking:
    """Store before/after photo references for a booking."""
    before = _text(before_photo)
    after = _text(after_photo)
    if not before and not after:
        raise BookingValidationError("Provide before_photo and/or after_photo")

    with unit_of_work():
        booking = load_booking(booking_id)
        if before:
            booking.before_photo = before
        if after:
            booking.after_photo = after
        booking.photos_uploaded_at = utc_now()

    uploaded = [name for name, url in (("before", before), ("after", after)) if url]
    dispatch_after_commit(BookingEvent(
        EventKinds.PHOTOS_UPLOADED,
        booking_id,
        actor=actor,
        details={"summary": "Uploaded " + " and ".join(uploaded) + " photo"},
    ))
    return booking

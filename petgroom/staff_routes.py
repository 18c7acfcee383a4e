"""Staff-facing walk-in booking API (mounted under /staff/walk-in)."""
from __future__ import annotations

from datetime import date

from flask import Blueprint, jsonify, request

from . import bookings, queries, sessions, state_machine
from .errors import BookingValidationError
from .identity import STAFF_ROLES, get_identity, require_roles
from .pricing import load_available_service, normalize_size, resolve_price
from .receipts import build_receipt

bp_staff = Blueprint("staff_walk_in", __name__)


@bp_staff.before_request
@require_roles(*STAFF_ROLES)
def _staff_only():
    return None


# Lookups


@bp_staff.get("/services")
def list_services() -> tuple[dict[str, object], int]:
    """Available grooming services with their size price tables.
    ---
    tags:
      - Walk-in (staff)
    responses:
      200:
        description: List of services
      401:
        description: Missing or invalid token
    """
    return jsonify({"services": [s.to_dict() for s in queries.list_services()]}), 200


@bp_staff.get("/services/<int:service_id>/price/<size>")
def service_price(service_id: int, size: str) -> tuple[dict[str, object], int]:
    """Resolved price of a service for a pet size.
    ---
    tags:
      - Walk-in (staff)
    parameters:
      - name: service_id
        in: path
        type: integer
        required: true
      - name: size
        in: path
        type: string
        enum: [xs, small, medium, large, xl, xxl]
        required: true
    responses:
      200:
        description: Price after size fallback (medium, then small, then 0)
      400:
        description: Unknown pet size
      404:
        description: Service not found or unavailable
    """
    pet_size = normalize_size(size)
    service = load_available_service(service_id)
    return jsonify({
        "service_id": service.service_id,
        "pet_size": pet_size,
        "price": float(resolve_price(service, pet_size)),
    }), 200


@bp_staff.get("/groomers")
def list_groomers() -> tuple[dict[str, object], int]:
    return jsonify({"groomers": [groomer.to_dict_basic() for groomer in queries.list_groomers()]}), 200


@bp_staff.get("/search/owners")
def search_owners() -> tuple[dict[str, object], int]:
    owners = queries.search_owners(request.args.get("search", ""))
    return jsonify({"owners": [o.to_dict_basic() for o in owners]}), 200


@bp_staff.get("/search/pets")
def search_pets() -> tuple[dict[str, object], int]:
    """Pets by name, optionally limited to one owner."""
    pets = queries.search_pets(request.args.get("search", ""), request.args.get("owner_id", type=int))
    return jsonify({"pets": [
        {**p.to_dict(), "owner_name": p.owner.name, "contact_number": p.owner.contact_number} for p in pets
    ]}), 200


@bp_staff.get("/owners/<int:owner_id>/pets")
def owner_pets(owner_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"pets": [p.to_dict() for p in queries.owner_pets(owner_id)]}), 200


@bp_staff.get("/active-appointments")
def active_appointments() -> tuple[dict[str, object], int]:
    """Today's pending/confirmed/in-progress bookings of both types."""
    return jsonify({"appointments": queries.active_appointments()}), 200


@bp_staff.get("/booked-slots")
def booked_slots() -> tuple[dict[str, object], int]:
    """Time slots already held on a day.
    ---
    tags:
      - Walk-in (staff)
    parameters:
      - name: date
        in: query
        type: string
        format: date
        description: Defaults to today
    responses:
      200:
        description: Slots formatted as h:MM AM/PM
      400:
        description: Invalid date
    """
    raw = request.args.get("date")
    day = None
    if raw:
        try:
            day = date.fromisoformat(raw)
        except ValueError:
            raise BookingValidationError("date must be YYYY-MM-DD", field="date") from None
    return jsonify({"booked_slots": queries.booked_slots(day)}), 200


# Bookings


@bp_staff.post("/bookings")
def create_booking() -> tuple[dict[str, object], int]:
    """Create a walk-in booking.
    ---
    tags:
      - Walk-in (staff)
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            pet_id:
              type: integer
            owner_id:
              type: integer
            groomer_id:
              type: integer
            service_ids:
              type: array
              items:
                type: integer
            base_price:
              type: number
              description: Optional; must equal the sum of the resolved service prices
            matted_coat_fee:
              type: number
            time_slot:
              type: string
              example: "10:00 AM"
            payment_method:
              type: string
              enum: [Cash, Gcash]
            special_notes:
              type: string
          required:
            - pet_id
            - owner_id
            - groomer_id
            - service_ids
            - time_slot
            - payment_method
    responses:
      201:
        description: Booking created
      400:
        description: Invalid payload or price mismatch
      404:
        description: Pet or service not found
      409:
        description: Pet already has an active booking today
    """
    payload = request.get_json(silent=True) or {}
    booking = bookings.create_walk_in_booking(payload, actor=get_identity())
    return jsonify({
        "message": "Walk-in booking created successfully",
        "booking_id": booking.booking_id,
        "queue_number": booking.queue_number,
        "booking": booking.to_detail_dict(),
    }), 201


@bp_staff.get("/bookings/today/all")
def today_bookings() -> tuple[dict[str, object], int]:
    return jsonify({"bookings": [b.to_dict() for b in queries.today_bookings()]}), 200


@bp_staff.get("/bookings/yesterday")
def yesterday_bookings() -> tuple[dict[str, object], int]:
    return jsonify({"bookings": [b.to_dict() for b in queries.yesterday_bookings()]}), 200


@bp_staff.get("/bookings/history")
def booking_history() -> tuple[dict[str, object], int]:
    status = request.args.get("status") or None
    if status is not None:
        status = state_machine.validate_status(status)
    limit = min(500, max(1, request.args.get("limit", 100, type=int)))
    return jsonify({"bookings": [b.to_dict() for b in queries.booking_history(status, limit)]}), 200


@bp_staff.get("/bookings/<int:booking_id>")
def booking_detail(booking_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"booking": queries.booking_detail(booking_id)}), 200


@bp_staff.patch("/bookings/<int:booking_id>/add-services")
def add_services(booking_id: int) -> tuple[dict[str, object], int]:
    """Add services and/or the matted-coat fee to a booking.
    ---
    tags:
      - Walk-in (staff)
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            service_ids:
              type: array
              items:
                type: integer
            payment_method:
              type: string
              enum: [Cash, Gcash]
            add_matted_coat_fee:
              type: boolean
            matted_coat_fee_amount:
              type: number
    responses:
      200:
        description: Services added; returns the new total
      400:
        description: Invalid payload, nothing to add, fee already applied or booking closed
      404:
        description: Booking or service not found
    """
    payload = request.get_json(silent=True) or {}
    result = bookings.add_services_to_booking(
        booking_id,
        service_ids=payload.get("service_ids"),
        payment_method=payload.get("payment_method"),
        add_matted_coat_fee=payload.get("add_matted_coat_fee", False),
        matted_coat_fee_amount=payload.get("matted_coat_fee_amount"),
        actor=get_identity(),
    )
    return jsonify({"message": "Services added successfully", **result}), 200


@bp_staff.patch("/bookings/<int:booking_id>/status")
def update_status(booking_id: int) -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    booking = bookings.update_status(booking_id, payload.get("status"), payload, actor=get_identity())
    return jsonify({"message": "Status updated", "booking": booking.to_detail_dict()}), 200


@bp_staff.patch("/bookings/<int:booking_id>/groomer")
def update_groomer(booking_id: int) -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    booking = bookings.update_groomer(
        booking_id,
        payload.get("groomer_id"),
        reason=payload.get("reason"),
        actor=get_identity(),
    )
    return jsonify({"message": "Groomer updated", "booking": booking.to_dict()}), 200


@bp_staff.patch("/bookings/<int:booking_id>/reschedule-time")
def reschedule_time(booking_id: int) -> tuple[dict[str, object], int]:
    """Move a booking to another time slot of the same day.
    ---
    tags:
      - Walk-in (staff)
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            time_slot:
              type: string
            new_time_slot:
              type: string
              description: Accepted when time_slot is absent
            reschedule_reason:
              type: string
              minLength: 10
    responses:
      200:
        description: Rescheduled
      400:
        description: Invalid payload or booking not reschedulable
      409:
        description: Slot already booked
    """
    payload = request.get_json(silent=True) or {}
    booking = bookings.reschedule_time_slot(
        booking_id,
        payload.get("time_slot") or payload.get("new_time_slot"),
        payload.get("reschedule_reason"),
        actor=get_identity(),
    )
    return jsonify({"message": "Time slot updated", "booking": booking.to_dict()}), 200


@bp_staff.patch("/bookings/<int:booking_id>/cancel")
def cancel_booking(booking_id: int) -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    booking = bookings.cancel_booking(
        booking_id,
        payload.get("cancellation_reason"),
        payload.get("cancelled_by"),
        payload.get("refund_eligible"),
        actor=get_identity(),
    )
    return jsonify({"message": "Booking cancelled", "booking": booking.to_detail_dict()}), 200


@bp_staff.post("/bookings/<int:booking_id>/photos")
def upload_photos(booking_id: int) -> tuple[dict[str, object], int]:
    """Attach before/after photo URLs (files are stored elsewhere)."""
    payload = request.get_json(silent=True) or {}
    booking = bookings.record_photos(
        booking_id,
        before_photo=payload.get("before_photo"),
        after_photo=payload.get("after_photo"),
        actor=get_identity(),
    )
    return jsonify({
        "message": "Photos saved",
        "before_photo_url": booking.before_photo,
        "after_photo_url": booking.after_photo,
    }), 200


# Sessions


@bp_staff.post("/bookings/<int:booking_id>/start-session")
def start_session(booking_id: int) -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    session = sessions.start_session(booking_id, payload.get("groomer_id"), actor=get_identity())
    return jsonify({"message": "Grooming session started", "session": session.to_dict()}), 201


@bp_staff.post("/bookings/<int:booking_id>/end-session")
def end_session(booking_id: int) -> tuple[dict[str, object], int]:
    session = sessions.end_session(booking_id, actor=get_identity())
    return jsonify({
        "message": "Grooming session completed",
        "session": session.to_dict(),
        "duration_minutes": session.duration_minutes,
    }), 200


@bp_staff.get("/bookings/<int:booking_id>/session")
def session_details(booking_id: int) -> tuple[dict[str, object], int]:
    return jsonify(sessions.session_details(booking_id)), 200


@bp_staff.get("/bookings/<int:booking_id>/receipt")
def receipt(booking_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"receipt": build_receipt(sessions.load_booking(booking_id))}), 200

"""Customer-facing walk-in API (mounted under /walk-in).

Every route is scoped to the pet owner carried by the bearer token.
"""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from . import queries
from .identity import CUSTOMER_ROLES, get_identity, require_roles
from .ratings import submit_rating

bp_customer = Blueprint("customer_walk_in", __name__)


@bp_customer.before_request
@require_roles(*CUSTOMER_ROLES)
def _customers_only():
    return None


def _owner_id() -> int:
    return get_identity().user_id


@bp_customer.get("/my-bookings")
def my_bookings() -> tuple[dict[str, object], int]:
    return jsonify({"bookings": [b.to_dict() for b in queries.customer_bookings(_owner_id())]}), 200


@bp_customer.get("/my-bookings/today")
def my_bookings_today() -> tuple[dict[str, object], int]:
    return jsonify({"bookings": [b.to_dict() for b in queries.customer_today(_owner_id())]}), 200


@bp_customer.get("/my-bookings/history")
def my_booking_history() -> tuple[dict[str, object], int]:
    """Completed and cancelled walk-ins, paginated.
    ---
    tags:
      - Walk-in (customer)
    parameters:
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 10
        maximum: 50
    responses:
      200:
        description: Bookings with pagination metadata
    """
    page = max(1, request.args.get("page", 1, type=int))
    limit = min(50, max(1, request.args.get("limit", 10, type=int)))
    return jsonify(queries.customer_history(_owner_id(), page, limit)), 200


@bp_customer.get("/my-bookings/<int:booking_id>")
def my_booking(booking_id: int) -> tuple[dict[str, object], int]:
    booking = queries.customer_booking(_owner_id(), booking_id)
    return jsonify({"booking": booking.to_detail_dict()}), 200


@bp_customer.post("/my-bookings/<int:booking_id>/rating")
def rate_booking(booking_id: int) -> tuple[dict[str, object], int]:
    """Rate a completed walk-in booking.
    ---
    tags:
      - Walk-in (customer)
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            rating:
              type: integer
              minimum: 1
              maximum: 5
            review:
              type: string
            aspects:
              type: object
              properties:
                staff:
                  type: integer
                service:
                  type: integer
                cleanliness:
                  type: integer
                value:
                  type: integer
          required:
            - rating
    responses:
      201:
        description: Rating saved
      400:
        description: Invalid rating, booking not completed or already rated
      404:
        description: Booking not found
    """
    payload = request.get_json(silent=True) or {}
    rating = submit_rating(_owner_id(), booking_id, payload)
    return jsonify({"message": "Thank you for your feedback!", "rating": rating.to_dict()}), 201


@bp_customer.get("/my-active-status")
def my_active_status() -> tuple[dict[str, object], int]:
    return jsonify(queries.customer_active_status(_owner_id())), 200


@bp_customer.get("/my-pets")
def my_pets() -> tuple[dict[str, object], int]:
    return jsonify({"pets": [p.to_dict() for p in queries.owner_pets(_owner_id())]}), 200

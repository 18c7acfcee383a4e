"""Core HTTP routes and blueprint registration."""
from __future__ import annotations

from flask import Flask, Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .errors import BookingServiceError
from .extensions import db

bp = Blueprint("api", __name__)


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database.
    ---
    tags:
      - Health
    responses:
      200:
        description: Database connection is ok.
      500:
        description: Database connection failed.
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


def handle_booking_error(exc: BookingServiceError):
    if exc.status_code >= 500:
        current_app.logger.error("Booking invariant violated: %s %s", exc.code, exc.details)
    return jsonify(exc.to_dict()), exc.status_code


def handle_database_error(exc: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.exception("Database error while handling request", exc_info=exc)
    return jsonify({"error": "database_error"}), 500


def register_routes(app: Flask) -> None:
    from .customer_routes import bp_customer
    from .staff_routes import bp_staff

    app.register_blueprint(bp)
    app.register_blueprint(bp_staff, url_prefix="/staff/walk-in")
    app.register_blueprint(bp_customer, url_prefix="/walk-in")

    app.register_error_handler(BookingServiceError, handle_booking_error)
    app.register_error_handler(SQLAlchemyError, handle_database_error)

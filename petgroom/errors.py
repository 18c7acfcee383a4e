"""
Walk-in booking exceptions.

Every error raised by the booking workflows derives from BookingServiceError
and carries the HTTP status the API layer answers with.
"""
from __future__ import annotations

from typing import Any, Optional


class BookingServiceError(Exception):
    """Base exception for walk-in booking errors."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: str = "booking_error",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class BookingValidationError(BookingServiceError):
    """Raised when request data fails validation."""

    def __init__(self, message: str, field: str | None = None, details: Optional[dict[str, Any]] = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, code="invalid_payload", details=error_details)


class PriceMismatchError(BookingServiceError):
    def __init__(self, submitted, resolved):
        super().__init__(
            message=f"base_price {submitted} does not match the service prices ({resolved})",
            code="price_mismatch",
            details={"base_price": float(submitted), "resolved_price": float(resolved)},
        )


class BookingNotFoundError(BookingServiceError):
    status_code = 404

    def __init__(self, booking_id: int | None = None, message: str | None = None):
        super().__init__(
            message=message or "Booking not found",
            code="not_found",
            details={"booking_id": booking_id} if booking_id is not None else None,
        )


class ServiceNotFoundError(BookingServiceError):
    status_code = 404

    def __init__(self, service_id: int):
        super().__init__(
            message=f"Service with ID {service_id} not found or not available",
            code="not_found",
            details={"service_id": service_id},
        )


class PetNotFoundError(BookingServiceError):
    status_code = 404

    def __init__(self, pet_id: int):
        super().__init__(message="Pet not found", code="not_found", details={"pet_id": pet_id})


class ActiveBookingConflictError(BookingServiceError):
    """Raised when a pet already has an active booking today."""

    status_code = 409

    def __init__(self, conflict):
        super().__init__(
            message=(
                f"This pet already has an active {conflict.booking_type} appointment today "
                f"({conflict.status}). Only one active appointment per pet is allowed."
            ),
            code="PET_HAS_ACTIVE_APPOINTMENT",
            details={"active_appointment": conflict.to_dict()},
        )
        self.conflict = conflict


class TimeSlotTakenError(BookingServiceError):
    status_code = 409

    def __init__(self, time_slot: str):
        super().__init__(
            message="Selected time slot is already booked",
            code="time_slot_taken",
            details={"time_slot": time_slot},
        )


class BookingStateError(BookingServiceError):
    """Raised when a status transition or state-dependent action is not allowed."""

    def __init__(
        self,
        current_state: str,
        target_state: str | None = None,
        message: str | None = None,
    ):
        msg = message or f"Cannot transition from {current_state} to {target_state}"
        details = {"current_state": current_state}
        if target_state:
            details["target_state"] = target_state
        super().__init__(message=msg, code="invalid_transition", details=details)


class NoActiveSessionError(BookingServiceError):
    def __init__(self, booking_id: int):
        super().__init__(
            message="No active session found for this booking",
            code="no_active_session",
            details={"booking_id": booking_id},
        )


class AlreadyAppliedError(BookingServiceError):
    def __init__(self):
        super().__init__(
            message="Matted coat fee is already applied to this booking",
            code="matted_coat_fee_already_applied",
        )


class NothingToAddError(BookingServiceError):
    def __init__(self):
        super().__init__(
            message="All selected services are already added to this booking",
            code="nothing_to_add",
        )


class AlreadyRatedError(BookingServiceError):
    def __init__(self, booking_id: int):
        super().__init__(
            message="You have already rated this booking",
            code="already_rated",
            details={"booking_id": booking_id},
        )


class TotalMismatchError(BookingServiceError):
    """Raised when total_amount drifts from the sum of lines plus fee."""

    status_code = 500

    def __init__(self, booking_id, total, expected):
        super().__init__(
            message="Booking total does not match its service lines and fees",
            code="total_mismatch",
            details={"booking_id": booking_id, "total_amount": float(total), "expected": float(expected)},
        )


class QueueAllocationError(BookingServiceError):
    """Raised when no free queue number could be claimed after retrying."""

    status_code = 409

    def __init__(self, booking_date, attempts: int):
        super().__init__(
            message="Could not assign a queue number, please retry",
            code="queue_busy",
            details={"booking_date": booking_date.isoformat(), "attempts": attempts},
        )

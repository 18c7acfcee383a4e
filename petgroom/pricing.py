"""Size-dependent service pricing."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import BookingValidationError, ServiceNotFoundError
from .models import PET_SIZES, GroomingService

# Sizes tried after the pet's own size when its price is missing.
FALLBACK_SIZES = ("medium", "small")

ZERO = Decimal("0")


def normalize_size(size: str | None) -> str:
    """Lower-case a pet size and check it against the known sizes."""
    value = (size or "").strip().lower()
    if value not in PET_SIZES:
        raise BookingValidationError(
            "Invalid pet size. Valid sizes: " + ", ".join(s.upper() for s in PET_SIZES),
            field="pet_size",
        )
    return value


def resolve_price(service: GroomingService, size: str) -> Decimal:
    """Price of ``service`` for a pet of ``size``.

    Falls back to the medium price, then the small price, then 0. Never
    returns None or a negative amount.
    """
    table = service.price_table()
    for candidate in (size, *FALLBACK_SIZES):
        price = table.get(candidate)
        if price is not None:
            return max(Decimal(price), ZERO)
    return ZERO


def load_available_service(service_id: int) -> GroomingService:
    service = GroomingService.query.filter_by(service_id=service_id, status="available").first()
    if service is None:
        raise ServiceNotFoundError(service_id)
    return service


def parse_amount(value, field: str) -> Decimal:
    """Parse a non-negative money amount from request data."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise BookingValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite() or amount < ZERO:
        raise BookingValidationError(f"{field} must be a non-negative number", field=field)
    return amount.quantize(Decimal("0.01"))

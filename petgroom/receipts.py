"""Printable receipt data for walk-in bookings.

Rendering (PDF, print view) is left to the client; this module only
assembles the numbers from the booking, its lines and its payment ledger.
"""
from __future__ import annotations

from decimal import Decimal

from .models import WalkInBooking


def payment_status(paid: Decimal, total: Decimal) -> str:
    if paid >= total:
        return "Paid"
    if paid > 0:
        return "Partially Paid"
    return "Pending"


def build_receipt(booking: WalkInBooking) -> dict[str, object]:
    items = [
        {
            "number": index,
            "service_id": line.service_id,
            "description": (line.service.name if line.service else "Grooming Service")
            + (" (Add-on)" if line.is_addon else ""),
            "is_addon": bool(line.is_addon),
            "price": float(line.price),
        }
        for index, line in enumerate(booking.lines, start=1)
    ]
    fee = Decimal(booking.matted_coat_fee or 0)
    if fee > 0:
        items.append({
            "number": len(items) + 1,
            "service_id": None,
            "description": "Matted Coat Fee",
            "is_addon": True,
            "price": float(fee),
        })

    total = Decimal(booking.total_amount)
    paid = sum((Decimal(p.amount) for p in booking.payments), Decimal("0"))
    methods: list[str] = []
    for payment in booking.payments:
        if payment.payment_method not in methods:
            methods.append(payment.payment_method)

    owner, pet = booking.owner, booking.pet
    return {
        "receipt_number": booking.booking_id,
        "queue_number": booking.queue_number,
        "date": booking.booking_date.isoformat(),
        "time_slot": booking.time_slot,
        "status": booking.status,
        "customer": {
            "name": owner.name if owner else None,
            "contact_number": owner.contact_number if owner else None,
            "email": owner.email if owner else None,
        },
        "pet": {
            "name": pet.name if pet else None,
            "breed": pet.breed if pet else None,
            "type": pet.type if pet else None,
            "size": pet.size if pet else None,
        },
        "groomer": booking.groomer.name if booking.groomer else None,
        "items": items,
        "total": float(total),
        "amount_paid": float(paid),
        "payment_methods": ", ".join(methods) if methods else "N/A",
        "payment_status": payment_status(paid, total),
        "payment_breakdown": [
            {
                "payment_type": p.payment_type,
                "payment_method": p.payment_method,
                "amount": float(p.amount),
                "created_at": p.created_at.isoformat() if p.created_at else None,
            }
            for p in booking.payments
        ],
    }

"""Tests for status transitions, cancellation and rescheduling."""
from __future__ import annotations

from datetime import timedelta

import pytest

from petgroom import state_machine
from petgroom.dates import business_today
from petgroom.errors import BookingStateError
from petgroom.extensions import db
from petgroom.models import Appointment, GroomingSession, WalkInBooking


@pytest.fixture
def booking_id(create_booking) -> int:
    return create_booking().get_json()["booking_id"]


def _patch(client, headers, booking_id, action, **payload):
    return client.patch(f"/staff/walk-in/bookings/{booking_id}/{action}", json=payload, headers=headers)


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        ("pending", "in_progress", True),
        ("pending", "cancelled", True),
        ("pending", "completed", False),
        ("in_progress", "completed", True),
        ("in_progress", "cancelled", True),
        ("in_progress", "pending", False),
        ("completed", "in_progress", True),
        ("completed", "cancelled", False),
        ("cancelled", "pending", False),
        ("cancelled", "in_progress", False),
    ],
)
def test_transition_table(current, target, allowed) -> None:
    booking = WalkInBooking(status=current)

    if allowed:
        assert state_machine.transition(booking, target) is True
        assert booking.status == target
    else:
        with pytest.raises(BookingStateError):
            state_machine.transition(booking, target)
        assert booking.status == current


def test_same_state_is_noop() -> None:
    booking = WalkInBooking(status="cancelled")

    assert state_machine.transition(booking, "cancelled") is False


def test_status_in_progress_opens_session(app, client, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "status", status="in_progress")

    assert response.status_code == 200
    booking = response.get_json()["booking"]
    assert booking["status"] == "in_progress"
    assert booking["active_session"]["status"] == "active"


def test_status_completed_closes_active_session(app, client, staff_headers, booking_id) -> None:
    _patch(client, staff_headers, booking_id, "status", status="in_progress")

    response = _patch(client, staff_headers, booking_id, "status", status="completed")

    assert response.status_code == 200
    assert response.get_json()["booking"]["active_session"] is None
    with app.app_context():
        assert GroomingSession.query.filter_by(booking_id=booking_id, status="active").count() == 0
        assert GroomingSession.query.filter_by(booking_id=booking_id, status="completed").count() == 1


def test_status_rejects_illegal_jump(client, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "status", status="completed")

    assert response.status_code == 400
    data = response.get_json()
    assert data["error"] == "invalid_transition"
    assert data["details"] == {"current_state": "pending", "target_state": "completed"}


def test_status_rejects_unknown_value(client, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "status", status="confirmed")

    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "status"


def test_status_cancel_requires_cancellation_fields(client, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "status", status="cancelled")

    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "cancellation_reason"


def test_cancel_closes_running_session(app, client, seed, staff_headers, booking_id) -> None:
    client.post(
        f"/staff/walk-in/bookings/{booking_id}/start-session",
        json={"groomer_id": seed["groomer_id"]},
        headers=staff_headers,
    )

    response = _patch(
        client,
        staff_headers,
        booking_id,
        "cancel",
        cancellation_reason="Pet became aggressive",
        cancelled_by="staff",
        refund_eligible=True,
    )

    assert response.status_code == 200
    booking = response.get_json()["booking"]
    assert booking["status"] == "cancelled"
    assert booking["cancellation"] == {
        "reason": "Pet became aggressive",
        "cancelled_by": "staff",
        "refund_eligible": True,
    }
    assert booking["active_session"] is None
    with app.app_context():
        session = GroomingSession.query.filter_by(booking_id=booking_id).one()
        assert session.status == "completed"
        assert session.duration_minutes is not None


def test_cancel_rejects_completed_booking(client, staff_headers, booking_id) -> None:
    _patch(client, staff_headers, booking_id, "status", status="in_progress")
    _patch(client, staff_headers, booking_id, "status", status="completed")

    response = _patch(client, staff_headers, booking_id, "cancel", cancellation_reason="Too late", cancelled_by="owner")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_transition"


def test_cancel_rejects_booking_from_prior_day(app, client, staff_headers, booking_id) -> None:
    with app.app_context():
        booking = db.session.get(WalkInBooking, booking_id)
        booking.booking_date = business_today() - timedelta(days=1)
        db.session.commit()

    response = _patch(client, staff_headers, booking_id, "cancel", cancellation_reason="Forgot", cancelled_by="owner")

    assert response.status_code == 400
    assert "today" in response.get_json()["message"]
    with app.app_context():
        assert db.session.get(WalkInBooking, booking_id).status == "pending"


def test_cancel_validates_cancelled_by(client, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "cancel", cancellation_reason="No show", cancelled_by="robot")

    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "cancelled_by"


def test_reschedule_into_taken_slot_rejected(app, client, seed, staff_headers, create_booking, booking_id) -> None:
    create_booking(pet_id=seed["large_pet_id"], base_price=650, time_slot="14:00")

    taken = _patch(
        client,
        staff_headers,
        booking_id,
        "reschedule-time",
        time_slot="2:00 PM",
        reschedule_reason="Owner running late today",
    )
    assert taken.status_code == 409
    assert taken.get_json()["error"] == "time_slot_taken"

    own = _patch(
        client,
        staff_headers,
        booking_id,
        "reschedule-time",
        time_slot="10:00 AM",
        reschedule_reason="Keeping the same slot",
    )
    assert own.status_code == 200
    assert own.get_json()["booking"]["time_slot"] == "10:00 AM"


def test_reschedule_checks_appointments_and_reason(app, client, seed, staff_headers, booking_id) -> None:
    with app.app_context():
        db.session.add(Appointment(
            pet_id=seed["other_pet_id"],
            owner_id=seed["other_owner_id"],
            service_id=seed["full_groom_id"],
            preferred_date=business_today(),
            preferred_time="09:30",
            status="pending",
        ))
        db.session.commit()

    short = _patch(client, staff_headers, booking_id, "reschedule-time", time_slot="11:00 AM", reschedule_reason="late")
    assert short.status_code == 400

    clash = _patch(
        client, staff_headers, booking_id, "reschedule-time", time_slot="9:30 am", reschedule_reason="Owner asked for earlier"
    )
    assert clash.status_code == 409

    moved = _patch(
        client, staff_headers, booking_id, "reschedule-time", time_slot="11:00", reschedule_reason="Owner asked for later"
    )
    assert moved.status_code == 200
    assert moved.get_json()["booking"]["time_slot"] == "11:00 AM"

    slots = client.get("/staff/walk-in/booked-slots", headers=staff_headers).get_json()["booked_slots"]
    assert sorted(slots) == ["11:00 AM", "9:30 AM"]


def test_reschedule_refused_for_closed_booking(client, staff_headers, booking_id) -> None:
    _patch(client, staff_headers, booking_id, "cancel", cancellation_reason="No show", cancelled_by="staff")

    response = _patch(
        client, staff_headers, booking_id, "reschedule-time", time_slot="3:00 PM", reschedule_reason="Customer came back"
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_transition"


def test_change_groomer_follows_active_session(app, client, seed, staff_headers, booking_id) -> None:
    client.post(
        f"/staff/walk-in/bookings/{booking_id}/start-session",
        json={"groomer_id": seed["groomer_id"]},
        headers=staff_headers,
    )

    response = _patch(
        client, staff_headers, booking_id, "groomer", groomer_id=seed["other_groomer_id"], reason="Shift change"
    )

    assert response.status_code == 200
    assert response.get_json()["booking"]["groomer_name"] == "Greg Groomer"
    with app.app_context():
        booking = db.session.get(WalkInBooking, booking_id)
        assert booking.groomer_change_reason == "Shift change"
        assert booking.active_session.groomer_id == seed["other_groomer_id"]


def test_change_groomer_rejects_customer_account(client, seed, staff_headers, booking_id) -> None:
    response = _patch(client, staff_headers, booking_id, "groomer", groomer_id=seed["owner_id"])

    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "groomer_id"


def test_record_photos(client, staff_headers, booking_id) -> None:
    response = client.post(
        f"/staff/walk-in/bookings/{booking_id}/photos",
        json={"before_photo": "https://cdn.example.com/before.jpg"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    assert response.get_json()["before_photo_url"] == "https://cdn.example.com/before.jpg"
    assert response.get_json()["after_photo_url"] is None

    detail = client.get(f"/staff/walk-in/bookings/{booking_id}", headers=staff_headers).get_json()["booking"]
    assert detail["has_before_photo"] is True
    assert detail["has_after_photo"] is False

    empty = client.post(f"/staff/walk-in/bookings/{booking_id}/photos", json={}, headers=staff_headers)
    assert empty.status_code == 400


def test_reschedule_accepts_new_time_slot_field(client, staff_headers, booking_id) -> None:
    response = _patch(
        client,
        staff_headers,
        booking_id,
        "reschedule-time",
        new_time_slot="15:30",
        reschedule_reason="Owner asked for later",
    )

    assert response.status_code == 200
    assert response.get_json()["booking"]["time_slot"] == "3:30 PM"

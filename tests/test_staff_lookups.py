"""Tests for staff lookup and listing endpoints."""
from __future__ import annotations

from datetime import timedelta

from petgroom.dates import business_today, slot_sort_key
from petgroom.extensions import db
from petgroom.models import Appointment, WalkInBooking


def test_services_list_hides_unavailable(client, staff_headers) -> None:
    services = client.get("/staff/walk-in/services", headers=staff_headers).get_json()["services"]

    names = {s["name"] for s in services}
    assert "Flea Dip" not in names
    full_groom = next(s for s in services if s["name"] == "Full Groom")
    assert full_groom["prices"]["medium"] == 500.0
    assert full_groom["prices"]["xl"] is None


def test_groomers_and_owner_search(client, seed, staff_headers) -> None:
    groomers = client.get("/staff/walk-in/groomers", headers=staff_headers).get_json()["groomers"]
    owners = client.get("/staff/walk-in/search/owners?search=oliv", headers=staff_headers).get_json()["owners"]
    pets = client.get(f"/staff/walk-in/owners/{seed['owner_id']}/pets", headers=staff_headers).get_json()["pets"]

    assert [g["name"] for g in groomers] == ["Gina Groomer", "Greg Groomer"]
    assert [o["id"] for o in owners] == [seed["owner_id"]]
    assert {p["name"] for p in pets} == {"Mochi", "Bantay"}


def test_day_listings(app, client, seed, staff_headers, create_booking) -> None:
    today_id = create_booking().get_json()["booking_id"]
    old_id = create_booking(pet_id=seed["large_pet_id"], base_price=650).get_json()["booking_id"]
    with app.app_context():
        old = db.session.get(WalkInBooking, old_id)
        old.booking_date = business_today() - timedelta(days=1)
        old.status = "completed"
        db.session.commit()

    today = client.get("/staff/walk-in/bookings/today/all", headers=staff_headers).get_json()["bookings"]
    yesterday = client.get("/staff/walk-in/bookings/yesterday", headers=staff_headers).get_json()["bookings"]
    history = client.get("/staff/walk-in/bookings/history?status=completed", headers=staff_headers).get_json()

    assert [b["id"] for b in today] == [today_id]
    assert [b["id"] for b in yesterday] == [old_id]
    assert [b["id"] for b in history["bookings"]] == [old_id]


def test_active_appointments_merges_both_types(app, client, seed, staff_headers, create_booking) -> None:
    create_booking()
    with app.app_context():
        db.session.add(Appointment(
            pet_id=seed["other_pet_id"],
            owner_id=seed["other_owner_id"],
            service_id=seed["nail_trim_id"],
            preferred_date=business_today(),
            preferred_time="08:00",
            status="in_progress",
        ))
        db.session.commit()

    entries = client.get("/staff/walk-in/active-appointments", headers=staff_headers).get_json()["appointments"]

    assert {(e["type"], e["pet_name"]) for e in entries} == {("walk_in", "Mochi"), ("appointment", "Kiko")}


def test_booked_slots_rejects_bad_date(client, staff_headers) -> None:
    response = client.get("/staff/walk-in/booked-slots?date=yesterday", headers=staff_headers)

    assert response.status_code == 400


def test_booking_detail_not_found(client, staff_headers) -> None:
    response = client.get("/staff/walk-in/bookings/31337", headers=staff_headers)

    assert response.status_code == 404
    assert response.get_json() == {
        "error": "not_found",
        "message": "Booking not found",
        "details": {"booking_id": 31337},
    }


def test_active_appointments_ordered_by_clock_time(app, client, seed, staff_headers, create_booking) -> None:
    create_booking(time_slot="10:00 AM")
    create_booking(pet_id=seed["large_pet_id"], base_price=650, time_slot="1:00 PM")
    with app.app_context():
        db.session.add(Appointment(
            pet_id=seed["other_pet_id"],
            owner_id=seed["other_owner_id"],
            service_id=seed["nail_trim_id"],
            preferred_date=business_today(),
            preferred_time="9:00 AM",
            status="confirmed",
        ))
        db.session.commit()

    entries = client.get("/staff/walk-in/active-appointments", headers=staff_headers).get_json()["appointments"]

    assert [e["time"] for e in entries] == ["9:00 AM", "10:00 AM", "1:00 PM"]


def test_slot_sort_key_orders_chronologically() -> None:
    slots = ["1:00 PM", "10:00 AM", "later", "9:00 AM", "12:30 PM", "08:15"]

    assert sorted(slots, key=slot_sort_key) == ["08:15", "9:00 AM", "10:00 AM", "12:30 PM", "1:00 PM", "later"]


def test_pet_search_by_name_and_owner(client, seed, staff_headers) -> None:
    found = client.get("/staff/walk-in/search/pets?search=mo", headers=staff_headers).get_json()["pets"]
    scoped = client.get(
        f"/staff/walk-in/search/pets?search=ko&owner_id={seed['owner_id']}", headers=staff_headers
    ).get_json()["pets"]
    short = client.get("/staff/walk-in/search/pets?search=m", headers=staff_headers)

    assert [(p["name"], p["owner_name"]) for p in found] == [("Mochi", "Olivia Owner")]
    assert scoped == []
    assert short.status_code == 400
    assert short.get_json()["details"]["field"] == "search"

"""Tests for the customer-facing walk-in endpoints and ratings."""
from __future__ import annotations

from datetime import timedelta

import pytest

from petgroom.dates import business_today
from petgroom.extensions import db
from petgroom.identity import issue_token
from petgroom.models import WalkInBooking, WalkInRating


@pytest.fixture
def booking_id(create_booking) -> int:
    return create_booking().get_json()["booking_id"]


def _complete(client, headers, booking_id) -> None:
    client.patch(f"/staff/walk-in/bookings/{booking_id}/status", json={"status": "in_progress"}, headers=headers)
    client.patch(f"/staff/walk-in/bookings/{booking_id}/status", json={"status": "completed"}, headers=headers)


def test_customer_routes_require_pet_owner(client, staff_headers) -> None:
    assert client.get("/walk-in/my-bookings").status_code == 401
    assert client.get("/walk-in/my-bookings", headers={"Authorization": "Bearer not-a-token"}).status_code == 401
    assert client.get("/walk-in/my-bookings", headers=staff_headers).status_code == 403


def test_my_bookings_today_and_active_status(client, customer_headers, booking_id) -> None:
    bookings = client.get("/walk-in/my-bookings", headers=customer_headers).get_json()["bookings"]
    today = client.get("/walk-in/my-bookings/today", headers=customer_headers).get_json()["bookings"]
    status = client.get("/walk-in/my-active-status", headers=customer_headers).get_json()

    assert [b["id"] for b in bookings] == [booking_id]
    assert [b["id"] for b in today] == [booking_id]
    assert status["has_active_booking"] is True
    assert status["active_bookings"][0]["queue_number"] == 1


def test_other_owners_booking_reads_as_missing(app, client, seed, booking_id) -> None:
    with app.app_context():
        token = issue_token(seed["other_owner_id"], "pet_owner")

    response = client.get(f"/walk-in/my-bookings/{booking_id}", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 404


def test_my_booking_detail(client, customer_headers, booking_id) -> None:
    response = client.get(f"/walk-in/my-bookings/{booking_id}", headers=customer_headers)

    assert response.status_code == 200
    booking = response.get_json()["booking"]
    assert booking["pet"]["name"] == "Mochi"
    assert booking["has_rating"] is False


def test_history_is_paginated(app, client, seed, customer_headers) -> None:
    with app.app_context():
        for day in range(1, 4):
            db.session.add(WalkInBooking(
                pet_id=seed["pet_id"],
                owner_id=seed["owner_id"],
                groomer_id=seed["groomer_id"],
                status="completed",
                booking_date=business_today() - timedelta(days=day),
                queue_number=1,
                time_slot="10:00 AM",
                base_price=500,
                total_amount=500,
                payment_method="Cash",
            ))
        db.session.commit()

    first = client.get("/walk-in/my-bookings/history?page=1&limit=2", headers=customer_headers).get_json()
    second = client.get("/walk-in/my-bookings/history?page=2&limit=2", headers=customer_headers).get_json()

    assert len(first["bookings"]) == 2
    assert first["pagination"] == {"currentPage": 1, "totalPages": 2, "totalRecords": 3, "hasMore": True}
    assert len(second["bookings"]) == 1
    assert second["pagination"]["hasMore"] is False
    assert first["bookings"][0]["booking_date"] > first["bookings"][1]["booking_date"]


def test_my_pets(client, customer_headers) -> None:
    pets = client.get("/walk-in/my-pets", headers=customer_headers).get_json()["pets"]

    assert [p["name"] for p in pets] == ["Bantay", "Mochi"]


def test_rating_requires_completed_booking(client, customer_headers, booking_id) -> None:
    response = client.post(f"/walk-in/my-bookings/{booking_id}/rating", json={"rating": 5}, headers=customer_headers)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_transition"


def test_rating_completed_booking_once(app, client, staff_headers, customer_headers, booking_id) -> None:
    _complete(client, staff_headers, booking_id)

    response = client.post(
        f"/walk-in/my-bookings/{booking_id}/rating",
        json={"rating": 4, "review": " Lovely trim ", "aspects": {"staff": 5, "value": 3}},
        headers=customer_headers,
    )

    assert response.status_code == 201
    rating = response.get_json()["rating"]
    assert rating["rating"] == 4
    assert rating["review"] == "Lovely trim"
    assert rating["aspects"] == {"staff": 5, "service": None, "cleanliness": None, "value": 3}

    again = client.post(f"/walk-in/my-bookings/{booking_id}/rating", json={"rating": 2}, headers=customer_headers)
    assert again.status_code == 400
    assert again.get_json()["error"] == "already_rated"
    with app.app_context():
        assert WalkInRating.query.count() == 1


@pytest.mark.parametrize("payload", [{}, {"rating": 0}, {"rating": 6}, {"rating": "5"}, {"rating": 5, "aspects": {"staff": 9}}])
def test_rating_validation(client, staff_headers, customer_headers, booking_id, payload) -> None:
    _complete(client, staff_headers, booking_id)

    response = client.post(f"/walk-in/my-bookings/{booking_id}/rating", json=payload, headers=customer_headers)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"

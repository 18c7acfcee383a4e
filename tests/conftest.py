"""pytest configuration and shared walk-in fixtures."""
from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the app package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from petgroom import create_app  # noqa: E402
from petgroom.extensions import db  # noqa: E402
from petgroom.identity import issue_token  # noqa: E402
from petgroom.models import GroomingService, Pet, ServicePrice, User  # noqa: E402


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SECRET_KEY": "test-secret",
        "BOOKING_TIMEZONE": "Asia/Manila",
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _service(name: str, prices: dict[str, int], status: str = "available") -> GroomingService:
    service = GroomingService(name=name, category="Grooming", status=status)
    service.prices = [ServicePrice(pet_size=size, price=Decimal(price)) for size, price in prices.items()]
    return service


@pytest.fixture
def seed(app) -> dict[str, int]:
    """Staff, two owners, their pets and a small service catalogue."""
    with app.app_context():
        groomer = User(name="Gina Groomer", email="gina@example.com", role="staff", staff_type="Groomer")
        other_groomer = User(name="Greg Groomer", email="greg@example.com", role="staff", staff_type="Groomer")
        owner = User(name="Olivia Owner", email="olivia@example.com", role="pet_owner", contact_number="0917 000 0001")
        other_owner = User(name="Oscar Owner", email="oscar@example.com", role="pet_owner")
        db.session.add_all([groomer, other_groomer, owner, other_owner])
        db.session.flush()

        mochi = Pet(owner_id=owner.user_id, name="Mochi", breed="Shih Tzu", type="Dog", size="medium")
        bantay = Pet(owner_id=owner.user_id, name="Bantay", breed="Aspin", type="Dog", size="large")
        kiko = Pet(owner_id=other_owner.user_id, name="Kiko", breed="Poodle", type="Dog", size="xl")

        full_groom = _service("Full Groom", {"small": 400, "medium": 500, "large": 650})
        nail_trim = _service("Nail Trim", {"medium": 150})
        teeth = _service("Teeth Brushing", {"small": 90})
        ear_clean = _service("Ear Cleaning", {})
        retired = _service("Flea Dip", {"medium": 300}, status="unavailable")
        db.session.add_all([mochi, bantay, kiko, full_groom, nail_trim, teeth, ear_clean, retired])
        db.session.commit()

        return {
            "groomer_id": groomer.user_id,
            "other_groomer_id": other_groomer.user_id,
            "owner_id": owner.user_id,
            "other_owner_id": other_owner.user_id,
            "pet_id": mochi.pet_id,
            "large_pet_id": bantay.pet_id,
            "other_pet_id": kiko.pet_id,
            "full_groom_id": full_groom.service_id,
            "nail_trim_id": nail_trim.service_id,
            "teeth_id": teeth.service_id,
            "ear_clean_id": ear_clean.service_id,
            "retired_id": retired.service_id,
        }


@pytest.fixture
def staff_headers(app, seed) -> dict[str, str]:
    with app.app_context():
        token = issue_token(seed["groomer_id"], "staff")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(app, seed) -> dict[str, str]:
    with app.app_context():
        token = issue_token(seed["owner_id"], "pet_owner")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_booking(client, seed, staff_headers):
    """POST a walk-in for Mochi with one Full Groom; keyword args override the payload."""

    def _create(**overrides):
        payload = {
            "pet_id": seed["pet_id"],
            "owner_id": seed["owner_id"],
            "groomer_id": seed["groomer_id"],
            "service_ids": [seed["full_groom_id"]],
            "base_price": 500,
            "time_slot": "10:00 AM",
            "payment_method": "Cash",
        }
        payload.update(overrides)
        return client.post("/staff/walk-in/bookings", json=payload, headers=staff_headers)

    return _create

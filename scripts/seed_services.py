#!/usr/bin/env python3
"""Create the tables and seed the grooming service catalogue with size-based prices."""
import sys
from decimal import Decimal
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from petgroom import create_app
from petgroom.extensions import db
from petgroom.models import GroomingService, ServicePrice

# name -> (category, description, {size: price in PHP})
SAMPLE_SERVICES = {
    "Full Groom": (
        "Grooming",
        "Bath, haircut, nail trim and ear cleaning",
        {"xs": 350, "small": 400, "medium": 500, "large": 650, "xl": 800, "xxl": 950},
    ),
    "Bath & Blow Dry": (
        "Bathing",
        "Shampoo, conditioner and blow dry",
        {"xs": 200, "small": 250, "medium": 300, "large": 400, "xl": 500, "xxl": 600},
    ),
    "Nail Trim": (
        "Add-ons",
        "Nail clipping and filing",
        {"small": 100, "medium": 150},
    ),
    "Teeth Brushing": (
        "Add-ons",
        "Enzymatic toothpaste brushing",
        {"medium": 120},
    ),
}


def seed_services():
    """Insert the sample services that are not there yet."""
    app = create_app()

    with app.app_context():
        db.create_all()
        added = 0
        for name, (category, description, prices) in SAMPLE_SERVICES.items():
            if GroomingService.query.filter_by(name=name).first():
                print(f"⏭️  {name} already exists, skipping")
                continue

            service = GroomingService(name=name, category=category, description=description)
            service.prices = [
                ServicePrice(pet_size=size, price=Decimal(price)) for size, price in prices.items()
            ]
            db.session.add(service)
            added += 1

        db.session.commit()
        print(f"✅ Added {added} grooming services")


if __name__ == "__main__":
    seed_services()

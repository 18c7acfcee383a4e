"""Database models for the walk-in grooming backend."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from .extensions import db

PET_SIZES = ("xs", "small", "medium", "large", "xl", "xxl")
BOOKING_STATUSES = ("pending", "in_progress", "completed", "cancelled")
PAYMENT_METHODS = ("Cash", "Gcash")
CANCELLED_BY = ("owner", "staff", "customer")


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _money(value: Decimal | None) -> float:
    return float(value) if value is not None else 0.0


# Lines each payment covers
payment_covered_lines = db.Table(
    "payment_covered_lines",
    db.Column("payment_id", db.Integer, db.ForeignKey("walk_in_booking_payments.payment_id"), primary_key=True),
    db.Column("line_id", db.Integer, db.ForeignKey("walk_in_booking_services.line_id"), primary_key=True),
)


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    contact_number = db.Column(db.String(30))
    role = db.Column(
        db.Enum(
            "pet_owner",
            "staff",
            "owner",
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="pet_owner",
    )
    staff_type = db.Column(db.String(50))  # e.g. Groomer, Receptionist
    status = db.Column(
        db.Enum("Active", "Inactive", name="user_status", native_enum=False, validate_strings=True),
        nullable=False,
        server_default="Active",
    )
    profile_photo_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    pets = db.relationship("Pet", back_populates="owner", lazy="dynamic")

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "contact_number": self.contact_number,
            "role": self.role,
            "staff_type": self.staff_type,
            "profile_photo_url": self.profile_photo_url,
        }


class Pet(db.Model):
    __tablename__ = "pets"

    pet_id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    breed = db.Column(db.String(100))
    type = db.Column(db.String(50))  # Dog, Cat
    gender = db.Column(db.String(20))
    size = db.Column(
        db.Enum(*PET_SIZES, name="pet_size", native_enum=False, validate_strings=True),
        nullable=False,
        server_default="medium",
    )
    weight = db.Column(db.Numeric(6, 2))
    age = db.Column(db.Integer)
    photo_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    owner = db.relationship("User", back_populates="pets")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.pet_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "breed": self.breed,
            "type": self.type,
            "gender": self.gender,
            "size": self.size,
            "weight": float(self.weight) if self.weight is not None else None,
            "age": self.age,
            "photo_url": self.photo_url,
        }


class GroomingService(db.Model):
    """A grooming service with one price per pet size."""

    __tablename__ = "grooming_services"

    service_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100))
    time_description = db.Column(db.String(100))
    image_url = db.Column(db.String(255))
    status = db.Column(
        db.Enum("available", "unavailable", name="service_status", native_enum=False, validate_strings=True),
        nullable=False,
        server_default="available",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    prices = db.relationship(
        "ServicePrice",
        back_populates="service",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def price_table(self) -> dict[str, Decimal]:
        return {entry.pet_size: entry.price for entry in self.prices}

    def to_dict(self) -> dict[str, object]:
        table = self.price_table()
        return {
            "id": self.service_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "time_description": self.time_description,
            "image_url": self.image_url,
            "status": self.status,
            "prices": {size: _money(table[size]) if size in table else None for size in PET_SIZES},
        }


class ServicePrice(db.Model):
    """One row of a service's size-keyed price table."""

    __tablename__ = "grooming_service_prices"
    __table_args__ = (
        db.UniqueConstraint("service_id", "pet_size", name="uq_service_price_size"),
    )

    price_id = db.Column(db.Integer, primary_key=True)
    service_id = db.Column(db.Integer, db.ForeignKey("grooming_services.service_id"), nullable=False)
    pet_size = db.Column(
        db.Enum(*PET_SIZES, name="price_pet_size", native_enum=False, validate_strings=True),
        nullable=False,
    )
    price = db.Column(db.Numeric(10, 2), nullable=False)

    service = db.relationship("GroomingService", back_populates="prices")


class Appointment(db.Model):
    """Pre-scheduled appointment. Only read here, for conflict and slot checks."""

    __tablename__ = "appointments"

    appointment_id = db.Column(db.Integer, primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey("pets.pet_id"), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("grooming_services.service_id"), nullable=False)
    preferred_date = db.Column(db.Date, nullable=False)
    preferred_time = db.Column(db.String(20), nullable=False)
    status = db.Column(
        db.Enum(
            "pending",
            "confirmed",
            "in_progress",
            "completed",
            "cancelled",
            name="appointment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="pending",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    pet = db.relationship("Pet")
    service = db.relationship("GroomingService")


class WalkInBooking(db.Model):
    """Same-day walk-in grooming booking."""

    __tablename__ = "walk_in_bookings"
    __table_args__ = (
        db.UniqueConstraint("booking_date", "queue_number", name="uq_walk_in_queue_per_day"),
    )

    booking_id = db.Column(db.Integer, primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey("pets.pet_id"), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    groomer_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    status = db.Column(
        db.Enum(*BOOKING_STATUSES, name="walk_in_status", native_enum=False, validate_strings=True),
        nullable=False,
        server_default="pending",
    )
    booking_date = db.Column(db.Date, nullable=False)
    queue_number = db.Column(db.Integer, nullable=False)
    time_slot = db.Column(db.String(20), nullable=False)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    matted_coat_fee = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(
        db.Enum(*PAYMENT_METHODS, name="payment_method", native_enum=False, validate_strings=True),
        nullable=False,
    )
    payment_status = db.Column(db.String(20), nullable=False, default="paid")
    special_notes = db.Column(db.Text)
    reschedule_reason = db.Column(db.Text)
    groomer_change_reason = db.Column(db.Text)
    cancellation_reason = db.Column(db.Text)
    cancelled_by = db.Column(
        db.Enum(*CANCELLED_BY, name="cancelled_by", native_enum=False, validate_strings=True),
        nullable=True,
    )
    refund_eligible = db.Column(db.Boolean, nullable=False, default=False)
    before_photo = db.Column(db.String(255))
    after_photo = db.Column(db.String(255))
    photos_uploaded_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    pet = db.relationship("Pet")
    owner = db.relationship("User", foreign_keys=[owner_id])
    groomer = db.relationship("User", foreign_keys=[groomer_id])
    lines = db.relationship(
        "BookingServiceLine",
        back_populates="booking",
        order_by=lambda: [BookingServiceLine.is_addon, BookingServiceLine.line_id],
        cascade="all, delete-orphan",
    )
    payments = db.relationship(
        "PaymentRecord",
        back_populates="booking",
        order_by=lambda: [PaymentRecord.created_at, PaymentRecord.payment_id],
        cascade="all, delete-orphan",
    )
    sessions = db.relationship(
        "GroomingSession",
        back_populates="booking",
        order_by="GroomingSession.start_time.desc()",
        cascade="all, delete-orphan",
    )
    rating = db.relationship("WalkInRating", back_populates="booking", uselist=False)

    @property
    def active_session(self) -> "GroomingSession | None":
        for session in self.sessions:
            if session.status == "active":
                return session
        return None

    @property
    def has_photos(self) -> bool:
        return bool(self.before_photo or self.after_photo)

    def lines_total(self) -> Decimal:
        return sum((line.price for line in self.lines), Decimal("0"))

    def to_dict(self) -> dict[str, object]:
        first_line = self.lines[0] if self.lines else None
        return {
            "id": self.booking_id,
            "pet_id": self.pet_id,
            "pet_name": self.pet.name if self.pet else None,
            "pet_size": self.pet.size if self.pet else None,
            "owner_id": self.owner_id,
            "owner_name": self.owner.name if self.owner else None,
            "groomer_id": self.groomer_id,
            "groomer_name": self.groomer.name if self.groomer else None,
            "status": self.status,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "queue_number": self.queue_number,
            "time_slot": self.time_slot,
            "base_price": _money(self.base_price),
            "matted_coat_fee": _money(self.matted_coat_fee),
            "total_amount": _money(self.total_amount),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "service_name": first_line.service.name if first_line and first_line.service else "No Service",
            "has_photos": self.has_photos,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_detail_dict(self) -> dict[str, object]:
        active = self.active_session
        payload = self.to_dict()
        payload.update({
            "owner": self.owner.to_dict_basic() if self.owner else None,
            "pet": self.pet.to_dict() if self.pet else None,
            "special_notes": self.special_notes,
            "reschedule_reason": self.reschedule_reason,
            "groomer_change_reason": self.groomer_change_reason,
            "cancellation": {
                "reason": self.cancellation_reason,
                "cancelled_by": self.cancelled_by,
                "refund_eligible": bool(self.refund_eligible),
            } if self.status == "cancelled" else None,
            "services": [line.to_dict() for line in self.lines],
            "payment_history": [payment.to_dict() for payment in self.payments],
            "active_session": active.to_dict() if active else None,
            "session_history": [s.to_dict() for s in self.sessions if s.status == "completed"],
            "before_photo_url": self.before_photo,
            "after_photo_url": self.after_photo,
            "has_before_photo": bool(self.before_photo),
            "has_after_photo": bool(self.after_photo),
            "rating": self.rating.to_dict() if self.rating else None,
            "has_rating": self.rating is not None,
        })
        return payload


class BookingServiceLine(db.Model):
    __tablename__ = "walk_in_booking_services"
    __table_args__ = (
        db.UniqueConstraint("booking_id", "service_id", name="uq_booking_service_line"),
    )

    line_id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("walk_in_bookings.booking_id"), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("grooming_services.service_id"), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    is_addon = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    booking = db.relationship("WalkInBooking", back_populates="lines")
    service = db.relationship("GroomingService")

    def to_dict(self) -> dict[str, object]:
        return {
            "line_id": self.line_id,
            "id": self.service_id,
            "name": self.service.name if self.service else None,
            "description": self.service.description if self.service else None,
            "price": _money(self.price),
            "is_addon": bool(self.is_addon),
        }


class PaymentRecord(db.Model):
    """Append-only payment ledger entry for a walk-in booking."""

    __tablename__ = "walk_in_booking_payments"

    payment_id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("walk_in_bookings.booking_id"), nullable=False)
    payment_method = db.Column(
        db.Enum(*PAYMENT_METHODS, name="ledger_payment_method", native_enum=False, validate_strings=True),
        nullable=False,
    )
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_type = db.Column(
        db.Enum("initial", "addon", name="payment_type", native_enum=False, validate_strings=True),
        nullable=False,
    )
    covers_matted_coat_fee = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    booking = db.relationship("WalkInBooking", back_populates="payments")
    covered_lines = db.relationship(
        "BookingServiceLine",
        secondary=payment_covered_lines,
        order_by="BookingServiceLine.line_id",
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.payment_id,
            "payment_method": self.payment_method,
            "amount": _money(self.amount),
            "payment_type": self.payment_type,
            "service_ids": [line.service_id for line in self.covered_lines],
            "line_ids": [line.line_id for line in self.covered_lines],
            "covers_matted_coat_fee": bool(self.covers_matted_coat_fee),
            "created_at": _iso(self.created_at),
        }


class GroomingSession(db.Model):
    __tablename__ = "grooming_sessions"

    session_id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("walk_in_bookings.booking_id"), nullable=False)
    groomer_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, default=utc_now)
    end_time = db.Column(db.DateTime, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    status = db.Column(
        db.Enum("active", "completed", name="session_status", native_enum=False, validate_strings=True),
        nullable=False,
        server_default="active",
    )
    notes = db.Column(db.Text)

    booking = db.relationship("WalkInBooking", back_populates="sessions")
    groomer = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.session_id,
            "booking_id": self.booking_id,
            "groomer_id": self.groomer_id,
            "groomer_name": self.groomer.name if self.groomer else None,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "notes": self.notes,
        }


class WalkInRating(db.Model):
    """Customer rating for a completed walk-in booking."""

    __tablename__ = "walk_in_ratings"

    rating_id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(
        db.Integer, db.ForeignKey("walk_in_bookings.booking_id"), nullable=False, unique=True
    )
    customer_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    review = db.Column(db.Text)
    staff_friendliness = db.Column(db.Integer)
    service_quality = db.Column(db.Integer)
    cleanliness = db.Column(db.Integer)
    value_for_money = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    booking = db.relationship("WalkInBooking", back_populates="rating")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.rating_id,
            "booking_id": self.booking_id,
            "customer_id": self.customer_id,
            "rating": self.rating,
            "review": self.review,
            "aspects": {
                "staff": self.staff_friendliness,
                "service": self.service_quality,
                "cleanliness": self.cleanliness,
                "value": self.value_for_money,
            },
            "created_at": _iso(self.created_at),
        }


class Notification(db.Model):
    __tablename__ = "notifications"

    notification_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    walk_in_booking_id = db.Column(db.Integer, db.ForeignKey("walk_in_bookings.booking_id"), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    notification_type = db.Column(db.String(50), nullable=False, default="walk_in")
    is_read = db.Column(db.Boolean, nullable=False, server_default="0")
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.notification_id,
            "user_id": self.user_id,
            "walk_in_booking_id": self.walk_in_booking_id,
            "title": self.title,
            "message": self.message,
            "notification_type": self.notification_type,
            "is_read": self.is_read,
            "created_at": _iso(self.created_at),
        }


class ActivityLog(db.Model):
    """Audit trail entry written after staff actions."""

    __tablename__ = "activity_logs"

    log_id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=True)
    actor_role = db.Column(db.String(20))
    action = db.Column(db.String(50), nullable=False)
    target_type = db.Column(db.String(50), nullable=False)
    target = db.Column(db.String(255), nullable=False)
    details = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.log_id,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "action": self.action,
            "target_type": self.target_type,
            "target": self.target,
            "details": self.details,
            "created_at": _iso(self.created_at),
        }

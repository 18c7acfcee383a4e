"""Business-day and time-slot helpers."""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from flask import current_app

from .models import as_utc, utc_now

_SLOT_24H = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")
_SLOT_12H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def business_zone() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("BOOKING_TIMEZONE", "UTC"))


def business_today() -> date:
    """The current calendar day in the shop's timezone."""
    return utc_now().astimezone(business_zone()).date()


def business_yesterday() -> date:
    return business_today() - timedelta(days=1)


def to_business_date(moment: datetime) -> date:
    return as_utc(moment).astimezone(business_zone()).date()


def normalize_time_slot(slot: str | None) -> str:
    """Render a slot as ``h:MM AM/PM`` so 24h and 12h inputs compare equal.

    Unrecognised strings are returned stripped and unchanged.
    """
    value = (slot or "").strip()
    match = _SLOT_12H.match(value)
    if match:
        hour, minute, meridiem = int(match.group(1)), match.group(2), match.group(3).upper()
        return f"{hour}:{minute} {meridiem}"
    match = _SLOT_24H.match(value)
    if match:
        hour, minute = int(match.group(1)), match.group(2)
        meridiem = "PM" if hour >= 12 else "AM"
        display_hour = 12 if hour % 12 == 0 else hour % 12
        return f"{display_hour}:{minute} {meridiem}"
    return value


def slot_minutes(slot: str | None) -> int | None:
    """Minutes after midnight for a recognised slot, else None."""
    match = _SLOT_12H.match(normalize_time_slot(slot))
    if not match:
        return None
    hour = int(match.group(1)) % 12
    if match.group(3).upper() == "PM":
        hour += 12
    return hour * 60 + int(match.group(2))


def slot_sort_key(slot: str | None) -> tuple[int, int]:
    """Chronological ordering; unparseable slots sort last."""
    minutes = slot_minutes(slot)
    return (1, 0) if minutes is None else (0, minutes)

"""Post-commit hooks for walk-in booking events.

Workflows dispatch a BookingEvent only after their transaction committed.
Hooks (owner notifications, the activity log, anything registered later)
run one by one; a failing hook is logged and skipped and never reaches the
caller of the workflow.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from flask import Flask, current_app

from .extensions import db

HOOKS_KEY = "booking_hooks"


class EventKinds:
    """Event kind constants. Values double as activity-log action tags."""

    CREATED = "walk_in_create"
    RESCHEDULED = "walk_in_update"
    CANCELLED = "walk_in_cancel"
    COMPLETED = "walk_in_complete"
    SESSION_STARTED = "session_started"
    SESSION_COMPLETED = "session_completed"
    ADDONS_ADDED = "addons_added"
    GROOMER_CHANGED = "groomer_changed"
    PHOTOS_UPLOADED = "photos_uploaded"


@dataclass
class BookingEvent:
    kind: str
    booking_id: int
    actor: Any = None  # identity.Identity of the acting user, if known
    details: dict[str, Any] = field(default_factory=dict)


Hook = Callable[[BookingEvent], None]


def register_hook(app: Flask, hook: Hook) -> None:
    app.extensions.setdefault(HOOKS_KEY, []).append(hook)


def dispatch_after_commit(*events: BookingEvent) -> None:
    """Hand committed events to every registered hook."""
    hooks: list[Hook] = current_app.extensions.get(HOOKS_KEY, [])
    for event in events:
        for hook in hooks:
            try:
                hook(event)
            except Exception as exc:
                db.session.rollback()
                current_app.logger.exception(
                    "Post-commit hook %s failed for %s on booking %s",
                    getattr(hook, "__name__", repr(hook)),
                    event.kind,
                    event.booking_id,
                    exc_info=exc,
                )

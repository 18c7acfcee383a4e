"""Shared Flask extensions for the application."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import scoped_session

# SQLAlchemy database instance shared across the app.
db = SQLAlchemy()


@contextmanager
def unit_of_work() -> Iterator[scoped_session]:
    """Run a block of writes as one transaction.

    Commits when the block exits cleanly; on any exception the whole
    transaction is rolled back and the exception propagates.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

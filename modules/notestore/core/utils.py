"""
Core Utilities.

Shared utility functions used across the note store.
All modules should import utilities from this module.
"""

import uuid
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as a timezone-aware datetime.

    Note timestamps are written as ISO-8601 with an explicit UTC offset so
    that backups produced by other clients (which end in "Z") compare
    cleanly against locally created notes.

    Returns:
        Current UTC time
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return uuid.uuid4().hex

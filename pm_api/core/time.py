"""Central time utilities for the application.

Timestamps are stored as naive UTC datetimes (TIMESTAMP WITHOUT TIME ZONE),
matching the legacy schema this service writes to.
"""
from datetime import date, datetime, time, timezone

# Expiration date used for rows that never expire.
FOREVER = date(9999, 12, 31)


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Returns:
        datetime: Current UTC time as a naive datetime object
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_today() -> datetime:
    """Return midnight of the current UTC day as a naive datetime."""
    return datetime.combine(utc_now().date(), time.min)

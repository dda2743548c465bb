"""Clock helpers shared by the order store and the dashboard."""

from __future__ import annotations

from datetime import date, datetime, timezone

SQLITE_TIMESTAMP_SQL: str = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_utc_timestamp(value: datetime) -> str:
    """Format as ISO-8601 UTC text with millisecond precision (the stored form)."""
    utc_value = as_utc(value)
    return utc_value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_value.microsecond // 1000:03d}Z"


def local_today(now: datetime) -> date:
    """Return the calendar date of `now` in the host's local time zone.

    Delivery dates are plain calendar dates picked by the user, so due/overdue
    checks compare against the local date, not the UTC one.
    """
    return as_utc(now).astimezone().date()

"""Clock helpers. All persisted timestamps are UTC."""

from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser

UTC_TZ = pytz.UTC


def now_utc() -> datetime:
    """Return current time in UTC."""
    return datetime.now(UTC_TZ)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC."""
    if dt.tzinfo is None:
        # Assume naive datetime is already UTC
        return UTC_TZ.localize(dt)
    return dt.astimezone(UTC_TZ)


def parse_datetime_utc(value: str, default_tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Parse a datetime string and return it in UTC.

    If no timezone is provided in the string, assumes UTC.
    """
    dt = date_parser.parse(value)
    if dt.tzinfo is None:
        tz = default_tz or UTC_TZ
        dt = tz.localize(dt)
    return to_utc(dt)


def isoformat_utc(dt: Optional[datetime] = None) -> str:
    """Return an ISO-8601 UTC timestamp (now when dt is omitted)."""
    return to_utc(dt or now_utc()).isoformat()

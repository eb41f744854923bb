"""Timezone and calendar-date utilities for B3 market time."""

from datetime import date, datetime
from typing import Optional, Union

import pytz
from dateutil import parser as date_parser

from fii_tracker.config.settings import get_settings
from fii_tracker.core.exceptions import ValidationError

MARKET_TZ = pytz.timezone("America/Sao_Paulo")


def market_tz() -> pytz.BaseTzInfo:
    """Return the configured market timezone (B3 time unless overridden)."""
    return pytz.timezone(get_settings().market_timezone)


def now_market(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Return current time in the market timezone."""
    return datetime.now(tz or market_tz())


def to_market(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert a datetime to the market timezone."""
    tz = tz or market_tz()
    if dt.tzinfo is None:
        # Assume naive datetime is already market time
        return tz.localize(dt)
    return dt.astimezone(tz)


def today_iso(now: Optional[datetime] = None) -> str:
    """Return today's market date as YYYY-MM-DD."""
    return (now or now_market()).date().isoformat()


def parse_iso_date(value: Union[str, date, datetime]) -> str:
    """
    Normalize a calendar date to a YYYY-MM-DD string.

    Accepts date/datetime objects or any string dateutil understands
    ("2024-03-05", "2024-03-05T10:00:00Z"). Raises ValidationError otherwise.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid date: {value!r}")
    try:
        return date_parser.isoparse(value.strip()).date().isoformat()
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid date: {value!r}") from None


def month_key(iso_date: str) -> str:
    """Return the YYYY-MM bucket of an ISO date string."""
    return iso_date[:7]

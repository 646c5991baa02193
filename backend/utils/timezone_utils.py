"""
Timezone utility functions for the dispatch backend.

Timestamps are persisted as naive UTC datetimes. Calendar questions ("did the
driver do today's check?") are answered in the configured display timezone
(DISPLAY_TIMEZONE, default Asia/Jerusalem) and converted back to UTC bounds
before they reach the database.
"""

from datetime import datetime, date, timedelta, timezone
from typing import Optional, Tuple, Union

import pytz
from dateutil import parser as date_parser
from flask import current_app, has_app_context

DEFAULT_DISPLAY_TIMEZONE = "Asia/Jerusalem"


def get_display_timezone() -> str:
    """Get the configured display timezone name."""
    if has_app_context():
        return current_app.config.get('DISPLAY_TIMEZONE', DEFAULT_DISPLAY_TIMEZONE)
    return DEFAULT_DISPLAY_TIMEZONE


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc_naive(dt: datetime) -> datetime:
    """
    Normalise a datetime for storage/query: naive values are taken to be in
    the display timezone, aware values are converted. Result is naive UTC.
    """
    if dt.tzinfo is None:
        display_tz = pytz.timezone(get_display_timezone())
        dt = display_tz.localize(dt)
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def convert_utc_to_display(utc_dt: datetime) -> datetime:
    """Convert a UTC datetime (naive values are assumed UTC) to the display timezone."""
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(pytz.timezone(get_display_timezone()))


def local_day_bounds(target: Optional[Union[datetime, date]] = None) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) UTC bounds (naive) of the local calendar day that
    contains `target`.

    - None means "now"
    - a date is taken as that calendar day
    - a naive datetime is read as local wall-clock time
    - an aware datetime is first converted to the display timezone
    """
    display_tz = pytz.timezone(get_display_timezone())
    if target is None:
        target = utc_now()

    if isinstance(target, datetime):
        if target.tzinfo is None:
            local_day = target.date()
        else:
            local_day = target.astimezone(display_tz).date()
    else:
        local_day = target

    start_local = display_tz.localize(datetime(local_day.year, local_day.month, local_day.day))
    next_day = local_day + timedelta(days=1)
    # Localize the next midnight on its own so DST days keep their real length
    end_local = display_tz.localize(datetime(next_day.year, next_day.month, next_day.day))

    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )


def local_date_string(target: Optional[Union[datetime, date]] = None) -> str:
    """YYYY-MM-DD of the local calendar day that contains `target`."""
    start_utc, _ = local_day_bounds(target)
    return convert_utc_to_display(start_utc).strftime('%Y-%m-%d')


def parse_date_param(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD query parameter into a calendar date.

    Raises:
        ValueError: if the value can't be parsed
    """
    if not value:
        return None
    try:
        return date_parser.isoparse(value).date()
    except (ValueError, OverflowError):
        raise ValueError(f"Invalid date format: {value}. Use YYYY-MM-DD")


def parse_datetime_string(dt_string: Optional[str]) -> Optional[datetime]:
    """
    Parse an API datetime string into naive UTC for storage.
    Strings without an offset are read in the display timezone.
    """
    if not dt_string:
        return None
    try:
        parsed = date_parser.parse(dt_string)
    except (ValueError, OverflowError):
        raise ValueError(f"Unable to parse datetime string: {dt_string}")
    return to_utc_naive(parsed)


def format_datetime_for_api(utc_dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 UTC string (with offset) for a stored naive UTC datetime."""
    if utc_dt is None:
        return None
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(timezone.utc).isoformat()

from __future__ import annotations

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_engine.application.exceptions import ConfigurationMissing, InvalidInput

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_date(value: str | None) -> date:
    """Parse a YYYY-MM-DD calendar date. Raises InvalidInput."""
    if not value or not DATE_PATTERN.match(value.strip()):
        raise InvalidInput("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidInput(f"Invalid date: {value}") from e


def parse_time(value: str | None) -> time:
    """Parse an HH:MM wall-clock time. Raises InvalidInput."""
    match = TIME_PATTERN.match((value or "").strip())
    if not match:
        raise InvalidInput(f"Invalid time format: {value}. Use HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidInput(f"Invalid time: {value}")
    return time(hour, minute)


def localize(day: date, wall_clock: time, timezone: ZoneInfo) -> datetime:
    """Combine a date and wall-clock time into an aware datetime in timezone."""
    return datetime.combine(day, wall_clock, tzinfo=timezone)


def parse_provider_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as sent by providers ("Z" suffix allowed)."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationMissing(f"Unknown business timezone: {name}") from e

"""Shared validation utilities"""

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..exceptions import ValidationError

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_time_of_day(value: str) -> time:
    """
    Parse a single "HH:MM" token.

    Args:
        value: Time string such as "09:00" or " 9:30 "

    Returns:
        datetime.time with seconds set to zero

    Raises:
        ValidationError: If the token is not a valid 24h time
    """
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValidationError(f"Invalid time format: '{value}' (expected HH:MM)")
    hh = int(match.group(1))
    mm = int(match.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValidationError(f"Invalid time value: '{value}' (0<=HH<=23, 0<=MM<=59)")
    return time(hh, mm)


def parse_times_list(value: Optional[str]) -> list[time]:
    """
    Parse a comma-separated list of times of day, keeping the given order.

    Raises:
        ValidationError: If the list is empty, a token is malformed, or a time repeats
    """
    if value is None or not value.strip():
        raise ValidationError("At least one time of day is required (e.g. '09:00, 21:00')")

    times = []
    for token in value.split(","):
        parsed = parse_time_of_day(token)
        if parsed in times:
            raise ValidationError(f"Duplicate time of day: '{token.strip()}'")
        times.append(parsed)
    return times


def format_times_list(times: list[time]) -> str:
    """Canonical storage form: "HH:MM, HH:MM" """
    return ", ".join(f"{t.hour:02d}:{t.minute:02d}" for t in times)


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is None or end_date is None:
        raise ValidationError("Start date and end date are required")
    if end_date < start_date:
        raise ValidationError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )


def as_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; an offset-aware value is converted to that"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_period(start: Optional[datetime], end: Optional[datetime]) -> None:
    """An open-ended period is fine; a reversed one is not"""
    if start is not None and end is not None and end < start:
        raise ValidationError("Period end must not be before period start")


def validate_dose(value) -> Decimal:
    """Normalize a dose amount to a positive Decimal"""
    try:
        dose = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid dose amount: {value!r}")
    if not dose.is_finite() or dose <= 0:
        raise ValidationError(f"Dose amount must be greater than zero, got {value!r}")
    return dose

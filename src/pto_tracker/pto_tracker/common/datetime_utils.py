from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value, field_name: str = "Date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    v = (value or "").strip() if isinstance(value, str) else ""
    if not v:
        raise ValidationError(f"{field_name} is required")
    try:
        return datetime.strptime(v, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def parse_hhmm(value, field_name: str = "Time") -> Optional[time]:
    if isinstance(value, time):
        return value
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a time (HH:MM)")
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.strptime(v, "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be a time (HH:MM)")


def week_bounds(today: date) -> tuple[datetime, datetime]:
    """Sunday 00:00:00 to Saturday 23:59:59.999999 of the week containing `today`."""
    days_since_sunday = (today.weekday() + 1) % 7
    start = datetime.combine(today - timedelta(days=days_since_sunday), time.min)
    end = datetime.combine(start.date() + timedelta(days=6), time.max)
    return start, end


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()

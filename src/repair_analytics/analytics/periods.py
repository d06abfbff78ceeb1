"""Calendar period keys and labels.

Maps a timestamp and a granularity to a bucket key (grouping identity) and a
human label.  Keys are zero padded so a plain string sort is chronological
for every granularity.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from enum import Enum


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


def to_date(value) -> date | None:
    """Coerce a datetime, date or ISO string to a date, or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    return None


def _full_date(d: date) -> str:
    return f"{calendar.month_name[d.month]} {d.day}, {d.year}"


def period_start(d: date, granularity: Granularity) -> date:
    """Return the first calendar day of the period containing *d*."""
    granularity = Granularity(granularity)
    if granularity is Granularity.DAILY:
        return d
    if granularity is Granularity.WEEKLY:
        # weekday(): Monday=0 .. Sunday=6, so Sunday goes back six days
        return d - timedelta(days=d.weekday())
    if granularity is Granularity.MONTHLY:
        return d.replace(day=1)
    if granularity is Granularity.QUARTERLY:
        return date(d.year, ((d.month - 1) // 3) * 3 + 1, 1)
    return date(d.year, 1, 1)


def format_label(start: date, granularity: Granularity) -> str:
    """Display label for the period beginning at *start*."""
    granularity = Granularity(granularity)
    if granularity is Granularity.DAILY:
        return _full_date(start)
    if granularity is Granularity.WEEKLY:
        return f"Week of {_full_date(start)}"
    if granularity is Granularity.MONTHLY:
        return f"{calendar.month_name[start.month]} {start.year}"
    if granularity is Granularity.QUARTERLY:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return f"{start.year:04d}"


def format_key(start: date, granularity: Granularity) -> str:
    """Sortable bucket key for the period beginning at *start*."""
    granularity = Granularity(granularity)
    if granularity in (Granularity.DAILY, Granularity.WEEKLY):
        return start.isoformat()
    if granularity is Granularity.MONTHLY:
        return f"{start.year:04d}-{start.month:02d}"
    if granularity is Granularity.QUARTERLY:
        return f"{start.year:04d}-Q{(start.month - 1) // 3 + 1}"
    return f"{start.year:04d}"


def period_key(timestamp, granularity: Granularity) -> tuple[str, str]:
    """Return ``(key, label)`` for *timestamp* under *granularity*.

    Raises ``ValueError`` if the timestamp cannot be interpreted as a date.
    """
    d = to_date(timestamp)
    if d is None:
        raise ValueError(f"Unparseable timestamp: {timestamp!r}")
    start = period_start(d, granularity)
    return format_key(start, granularity), format_label(start, granularity)


def _add_months(d: date, months: int) -> date:
    total = d.year * 12 + (d.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance_period(start: date, granularity: Granularity, steps: int = 1) -> date:
    """Move *start* forward by *steps* periods of *granularity*."""
    granularity = Granularity(granularity)
    if granularity is Granularity.DAILY:
        return start + timedelta(days=steps)
    if granularity is Granularity.WEEKLY:
        return start + timedelta(days=7 * steps)
    if granularity is Granularity.MONTHLY:
        return _add_months(start, steps)
    if granularity is Granularity.QUARTERLY:
        return _add_months(start, 3 * steps)
    return _add_months(start, 12 * steps)


def future_labels(last_start: date, granularity: Granularity, count: int) -> list[str]:
    """Labels for the *count* periods following the one starting at *last_start*."""
    return [
        format_label(advance_period(last_start, granularity, step), granularity)
        for step in range(1, count + 1)
    ]

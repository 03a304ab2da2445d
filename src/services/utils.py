"""
Shared utility functions for cycle-related services.

These utilities handle the date conversions used across the calculation
modules: parsing stored date strings into calendar days in the reference
timezone, parsing checkpoint timestamps, and day arithmetic.
"""
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

from src.models.event import CycleEvent, EventKind

T = TypeVar("T")


def parse_event_date(raw: Optional[str], tz: ZoneInfo) -> Optional[date]:
    """
    Parse a stored date property into a calendar day.

    Plain ``YYYY-MM-DD`` values are taken as-is. Datetime values are
    converted to the reference timezone first (naive datetimes are read as
    UTC) so that a late-evening UTC entry lands on the local day.

    Args:
        raw: ISO date or datetime string
        tz: Reference timezone

    Returns:
        The calendar day, or None if the value is unset or unparseable

    Example:
        >>> parse_event_date("2024-01-31T20:00:00Z", ZoneInfo("Asia/Tokyo"))
        datetime.date(2024, 2, 1)
    """
    if not raw:
        return None
    raw = raw.strip()
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if not raw:
        return None
    try:
        moment = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def to_utc(moment: datetime) -> datetime:
    """Return an aware UTC datetime, reading naive values as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def days_between(later: date, earlier: date) -> int:
    """Signed number of days from ``earlier`` to ``later``."""
    return (later - earlier).days


def format_month_day(day: date) -> str:
    """Format a day as ``MM/DD``."""
    return day.strftime("%m/%d")


def filter_kind(events: Iterable[CycleEvent], kind: EventKind) -> List[CycleEvent]:
    """
    Filter events of one kind, keeping their order.

    Example:
        >>> starts = filter_kind(events, EventKind.START)
    """
    return [e for e in events if e.kind == kind]


def last_or_none(items: List[T]) -> Optional[T]:
    return items[-1] if items else None

"""
Record title formatting.

Titles read ``<kind> / MM/DD``; daily notes also get the time of day they
were written, e.g. ``Daily note / 01/05 (morning)``.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from src.models.event import CycleEvent, EventKind
from src.services.classifier import kind_label
from src.services.utils import format_month_day, to_utc
from src.utils.config import TrackerConfig


def time_band(moment: datetime, config: TrackerConfig) -> str:
    """
    Bucket a timestamp into morning, daytime or evening in the reference timezone.

    Hours up to and including ``morning_end_hour`` are morning, up to
    ``afternoon_end_hour`` daytime, later hours evening.
    """
    hour = to_utc(moment).astimezone(ZoneInfo(config.reference_timezone)).hour
    if hour <= config.morning_end_hour:
        return "morning"
    if hour <= config.afternoon_end_hour:
        return "daytime"
    return "evening"


def title_for(event: CycleEvent, config: TrackerConfig) -> str:
    """Build the display title of an event's record."""
    base = f"{kind_label(event.kind, config)} / {format_month_day(event.date)}"
    if event.kind == EventKind.DAILY_NOTE:
        return f"{base} ({time_band(event.created_at, config)})"
    return base

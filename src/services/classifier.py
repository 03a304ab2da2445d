"""
Event classification service.

Turns raw store records into typed cycle events. Records with an
unrecognized kind or an unset/unparseable date are noise, not errors: they
are left out of every later calculation without being flagged.

Typical usage:
    records = store.query_all(config.properties.date)
    events = classify_records(records, config)
"""
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from aws_lambda_powertools import Logger

from src.models.event import CycleEvent, EventKind
from src.models.record import Record
from src.services.exceptions import PropertyTypeError
from src.services.utils import parse_event_date
from src.utils.config import TrackerConfig

logger = Logger()


def kind_lookup(config: TrackerConfig) -> Dict[str, EventKind]:
    """Map configured select labels to event kinds."""
    labels = config.kinds
    return {
        labels.start: EventKind.START,
        labels.end: EventKind.END,
        labels.planned_period: EventKind.PLANNED_PERIOD,
        labels.planned_ovulation: EventKind.PLANNED_OVULATION,
        labels.daily_note: EventKind.DAILY_NOTE,
    }


def kind_label(kind: EventKind, config: TrackerConfig) -> str:
    """Select label for an event kind."""
    return getattr(config.kinds, kind.value)


def classify_record(
    record: Record,
    position: int,
    config: TrackerConfig,
    kinds: Optional[Dict[str, EventKind]] = None,
    tz: Optional[ZoneInfo] = None
) -> Optional[CycleEvent]:
    """
    Classify a single record.

    Args:
        record: Stored record
        position: Insertion order of the record
        config: Calculator configuration
        kinds: Pre-built label lookup (built from config when omitted)
        tz: Reference timezone (built from config when omitted)

    Returns:
        CycleEvent, or None if the record has no recognizable kind or date
    """
    kinds = kinds if kinds is not None else kind_lookup(config)
    tz = tz or ZoneInfo(config.reference_timezone)
    props = config.properties

    try:
        label = record.get_select(props.kind)
        raw_date = record.get_date(props.date)
    except PropertyTypeError:
        return None

    kind = kinds.get(label) if label else None
    day = parse_event_date(raw_date, tz)
    if kind is None or day is None:
        return None

    return CycleEvent(
        id=record.id,
        kind=kind,
        date=day,
        created_by_automation=record.created_by_automation,
        last_edited_at=record.last_edited_time,
        created_at=record.created_time,
        position=position
    )


def classify_records(records: Sequence[Record], config: TrackerConfig) -> List[CycleEvent]:
    """
    Classify records into events sorted ascending by date.

    The sort is stable, so events on the same day keep the order in which
    the store returned them.

    Args:
        records: Records in store order
        config: Calculator configuration

    Returns:
        Sorted list of classified events
    """
    kinds = kind_lookup(config)
    tz = ZoneInfo(config.reference_timezone)

    events = []
    for position, record in enumerate(records):
        event = classify_record(record, position, config, kinds, tz)
        if event is not None:
            events.append(event)

    skipped = len(records) - len(events)
    if skipped:
        logger.debug("Skipped unclassifiable records", extra={"count": skipped})

    return sorted(events, key=lambda e: (e.date, e.position))

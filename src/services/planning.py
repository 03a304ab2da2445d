"""
Planning record service.

When enabled, a predicted next period and ovulation are also materialized
as planned records so that they show up alongside logged events. A planned
record is only created if none of the same kind exists on that day.
"""
from datetime import date
from typing import List

from aws_lambda_powertools import Logger

from src.models.event import EventKind
from src.models.record import PropertyValue
from src.services.classifier import kind_label
from src.services.record_store import RecordStore
from src.services.statistics import Prediction
from src.services.utils import format_month_day
from src.utils.config import TrackerConfig

logger = Logger()


def upsert_plan(store: RecordStore, day: date, kind: EventKind, config: TrackerConfig) -> bool:
    """
    Create a planned record unless one already exists.

    Args:
        store: Record store
        day: Planned day
        kind: PLANNED_PERIOD or PLANNED_OVULATION
        config: Calculator configuration

    Returns:
        True if a record was created
    """
    props = config.properties
    label = kind_label(kind, config)
    existing = store.query_filtered({props.kind: label, props.date: day.isoformat()})
    if existing:
        return False

    store.create_record({
        props.title: PropertyValue.title(f"{label} / {format_month_day(day)}"),
        props.date: PropertyValue.date(day),
        props.kind: PropertyValue.select(label)
    })
    logger.info("Created planned record", extra={"kind": kind.value, "date": day.isoformat()})
    return True


def upsert_plans(store: RecordStore, prediction: Prediction, config: TrackerConfig) -> List[EventKind]:
    """Upsert planned period and ovulation records; returns the kinds created."""
    created = []
    for day, kind in (
        (prediction.next_period, EventKind.PLANNED_PERIOD),
        (prediction.ovulation, EventKind.PLANNED_OVULATION),
    ):
        if upsert_plan(store, day, kind, config):
            created.append(kind)
    return created

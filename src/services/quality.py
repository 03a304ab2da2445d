"""
Data-quality and metric flag service.

Flags are recomputed from scratch every run: each classified record starts
with every flag cleared and gets only the flags computed here.
"""
from collections import defaultdict
from enum import Enum
from typing import Dict, Sequence, Set

from aws_lambda_powertools import Logger

from src.models.event import CycleEvent, Pair
from src.services.statistics import CycleStatistics

logger = Logger()


class MetricFlag(str, Enum):
    """
    Markers for the record that currently carries each headline metric.
    """
    LATEST_START = "latest_start"
    LATEST_END = "latest_end"
    LATEST_CYCLE = "latest_cycle"
    LATEST_BLEED = "latest_bleed"
    LATEST_AVG_CYCLE = "latest_avg_cycle"
    LATEST_AVG_BLEED = "latest_avg_bleed"


def find_duplicates(events: Sequence[CycleEvent]) -> Set[str]:
    """
    Find events sharing both kind and date with another event.

    Every member of a duplicate group is returned; none is preferred.
    """
    groups = defaultdict(list)
    for event in events:
        groups[(event.kind, event.date)].append(event.id)

    duplicates = {event_id for ids in groups.values() if len(ids) > 1 for event_id in ids}
    if duplicates:
        logger.info("Duplicate entries found", extra={"count": len(duplicates)})
    return duplicates


def find_order_anomalies(pairs: Sequence[Pair]) -> Set[str]:
    """Ids of matched ends dated before their start."""
    return {p.end.id for p in pairs if p.end is not None and p.end.date < p.start.date}


def latest_flags(
    starts: Sequence[CycleEvent],
    ends: Sequence[CycleEvent],
    stats: CycleStatistics
) -> Dict[str, Set[MetricFlag]]:
    """
    Decide which records carry the metric flags.

    Args:
        starts: Effective starts, ascending
        ends: Effective ends, ascending
        stats: Statistics for this run

    Returns:
        Mapping of record id to the flags it should have set
    """
    flags: Dict[str, Set[MetricFlag]] = defaultdict(set)
    last_start = starts[-1] if starts else None
    last_end = ends[-1] if ends else None

    if last_start is not None:
        flags[last_start.id].add(MetricFlag.LATEST_START)
    if last_end is not None:
        flags[last_end.id].add(MetricFlag.LATEST_END)

    for start in reversed(starts):
        if stats.cycle_lengths.get(start.id, 0) > 0:
            flags[start.id].add(MetricFlag.LATEST_CYCLE)
            break
    for end in reversed(ends):
        if stats.bleed_lengths.get(end.id, 0) > 0:
            flags[end.id].add(MetricFlag.LATEST_BLEED)
            break

    if stats.average_cycle > 0 and last_start is not None:
        flags[last_start.id].add(MetricFlag.LATEST_AVG_CYCLE)
    if stats.average_bleed > 0 and last_end is not None:
        flags[last_end.id].add(MetricFlag.LATEST_AVG_BLEED)

    return dict(flags)

"""
Statistics calculation service for cycle tracking data.

This module provides functionality for calculating cycle lengths (previous
end to start), bleed lengths (start to matched end, inclusive), rolling
averages under the configured averaging strategy, and the next-period and
ovulation predictions.

Typical usage:
    stats = compute_statistics(starts, all_ends, pairs, config)
    prediction = predict(starts[-1], stats.prediction_base_cycle, config.luteal_days)
"""
import math
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from aws_lambda_powertools import Logger
from pydantic import BaseModel

from src.models.event import CycleEvent, Pair
from src.services.pairing import previous_end_for_starts
from src.services.utils import days_between
from src.utils.config import FALLBACK_CYCLE_DAYS, AveragingStrategy, TrackerConfig

logger = Logger()


class Prediction(BaseModel):
    """
    Forecast written onto the latest start.
    """
    next_period: date
    ovulation: date


class CycleStatistics(BaseModel):
    """
    Derived values for one calculation run.
    """
    cycle_lengths: Dict[str, int]  # start id -> days since previous end, 0 if unknown
    bleed_lengths: Dict[str, int]  # end id -> inclusive days from matched start
    average_cycle: int
    average_bleed: int
    display_average_cycle: int
    prediction_base_cycle: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def cycle_length(start: CycleEvent, previous_end: Optional[CycleEvent]) -> int:
    """
    Days from the previous end to this start, never negative.

    Returns 0 when there is no previous end; 0 means unknown and is left out
    of averages.
    """
    if previous_end is None:
        return 0
    return max(0, days_between(start.date, previous_end.date))


def bleed_length(start: CycleEvent, end: CycleEvent) -> int:
    """Inclusive day count from start to end, at least 1."""
    return max(1, days_between(end.date, start.date) + 1)


def cycle_lengths(
    starts: Sequence[CycleEvent],
    previous_ends: Dict[str, Optional[CycleEvent]]
) -> Dict[str, int]:
    """Cycle length for every start, keyed by start id."""
    return {s.id: cycle_length(s, previous_ends.get(s.id)) for s in starts}


def bleed_lengths(pairs: Sequence[Pair]) -> Dict[str, int]:
    """Bleed length for every matched end, keyed by end id."""
    return {p.end.id: bleed_length(p.start, p.end) for p in pairs if p.end is not None}


def average_cycle(values: Sequence[int], config: TrackerConfig) -> int:
    """
    Rolling average cycle length, 0 when there is nothing to average.

    Args:
        values: Cycle lengths in chronological order
        config: Selects full-history or trailing-window averaging

    Returns:
        Average rounded to the nearest day
    """
    usable = [v for v in values if v > 0]
    if config.averaging == AveragingStrategy.TRAILING_WINDOW:
        usable = [v for v in usable if config.cycle_min_days <= v <= config.cycle_max_days]
        usable = usable[-config.trailing_window:]
    if not usable:
        return 0
    return round_half_up(sum(usable) / len(usable))


def average_bleed(values: Sequence[int], config: TrackerConfig) -> int:
    """Rolling average bleed length, 0 when there is nothing to average."""
    usable = list(values)
    if config.averaging == AveragingStrategy.TRAILING_WINDOW:
        usable = usable[-config.trailing_window:]
    if not usable:
        return 0
    return round_half_up(sum(usable) / len(usable))


def display_average_cycle(average: int, config: TrackerConfig) -> int:
    """Average cycle as written on records; uses the same fallback as predictions."""
    return prediction_base_cycle(average, config)


def prediction_base_cycle(average: int, config: TrackerConfig) -> int:
    """Cycle length used for forecasting, never 0."""
    if average > 0:
        return average
    return config.default_cycle if config.default_cycle > 0 else FALLBACK_CYCLE_DAYS


def predict(last_start: CycleEvent, base_cycle: int, luteal_days: int) -> Prediction:
    """
    Predict the next period and ovulation from the most recent start.

    Args:
        last_start: Chronologically last start
        base_cycle: Cycle length in days
        luteal_days: Days between ovulation and the next period

    Returns:
        Prediction
    """
    next_period = last_start.date + timedelta(days=base_cycle)
    return Prediction(next_period=next_period, ovulation=next_period - timedelta(days=luteal_days))


def compute_statistics(
    starts: Sequence[CycleEvent],
    history_ends: Sequence[CycleEvent],
    pairs: Sequence[Pair],
    config: TrackerConfig
) -> CycleStatistics:
    """
    Calculate cycle and bleed statistics over the whole history.

    Args:
        starts: Effective start events, ascending
        history_ends: End events used for previous-end lookups, ascending
        pairs: Pairs over all effective starts and ends
        config: Calculator configuration

    Returns:
        CycleStatistics
    """
    previous_ends = previous_end_for_starts(starts, history_ends)
    cycles = cycle_lengths(starts, previous_ends)
    bleeds = bleed_lengths(pairs)

    avg_cycle = average_cycle([cycles[s.id] for s in starts], config)
    avg_bleed = average_bleed([bleeds[p.end.id] for p in pairs if p.end is not None], config)

    logger.info("Calculated cycle statistics", extra={
        "starts": len(starts),
        "matched_ends": len(bleeds),
        "average_cycle": avg_cycle,
        "average_bleed": avg_bleed,
        "averaging": config.averaging.value
    })

    return CycleStatistics(
        cycle_lengths=cycles,
        bleed_lengths=bleeds,
        average_cycle=avg_cycle,
        average_bleed=avg_bleed,
        display_average_cycle=display_average_cycle(avg_cycle, config),
        prediction_base_cycle=prediction_base_cycle(avg_cycle, config)
    )

"""
Recomputation window selection.

Given the last checkpoint and the records edited since then, decide which
suffix of starts (and which ends) must be rewritten on this run.

Typical usage:
    window = select_window(events, starts, ends, state.last_calculated_at)
    for start in window.starts:
        ...
"""
from bisect import bisect_left
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Sequence

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict

from src.models.event import CycleEvent
from src.services.utils import to_utc

logger = Logger()


class WindowMode(str, Enum):
    """
    FULL on the first run, EMPTY when nothing was edited since the
    checkpoint, SUFFIX otherwise.
    """
    FULL = "full"
    EMPTY = "empty"
    SUFFIX = "suffix"


class CalculationWindow(BaseModel):
    """
    Starts and ends to recompute on this run.
    """
    model_config = ConfigDict(frozen=True)

    mode: WindowMode
    starts: List[CycleEvent] = []
    ends: List[CycleEvent] = []
    earliest_edited: Optional[date] = None

    def includes(self, event: Optional[CycleEvent]) -> bool:
        """Whether the event is part of the recomputed starts or ends."""
        if event is None:
            return False
        return any(e.id == event.id for e in self.starts) or any(e.id == event.id for e in self.ends)

    @property
    def refreshes_prediction(self) -> bool:
        """Prediction is rewritten unless an incremental window skips the latest start."""
        return self.mode in (WindowMode.FULL, WindowMode.EMPTY)


def earliest_edited_date(
    events: Sequence[CycleEvent],
    last_calculated_at: datetime
) -> Optional[date]:
    """
    Earliest event date among events edited strictly after the checkpoint.

    Args:
        events: All classified events
        last_calculated_at: Checkpoint timestamp

    Returns:
        Minimum date of an edited event, or None if nothing was edited
    """
    checkpoint = to_utc(last_calculated_at)
    edited = [e.date for e in events if to_utc(e.last_edited_at) > checkpoint]
    return min(edited) if edited else None


def select_window(
    events: Sequence[CycleEvent],
    starts: Sequence[CycleEvent],
    ends: Sequence[CycleEvent],
    last_calculated_at: Optional[datetime]
) -> CalculationWindow:
    """
    Compute the minimal recomputation window.

    The window begins one start before the first start dated on or after the
    earliest edited day, because that preceding start's values depend on the
    ends around the edit. When every start is dated before the edit, all
    starts are recomputed. Ends are taken from the window's first start
    onward with no upper bound.

    Args:
        events: All classified events, used to detect edits
        starts: Start events sorted ascending by date
        ends: End events sorted ascending by date
        last_calculated_at: Checkpoint, or None on the first run

    Returns:
        CalculationWindow
    """
    if last_calculated_at is None:
        logger.info("No checkpoint found, recomputing full history")
        return CalculationWindow(mode=WindowMode.FULL, starts=list(starts), ends=list(ends))

    earliest = earliest_edited_date(events, last_calculated_at)
    if earliest is None:
        logger.info("No records edited since checkpoint", extra={
            "last_calculated_at": last_calculated_at.isoformat()
        })
        return CalculationWindow(mode=WindowMode.EMPTY)

    start_dates = [s.date for s in starts]
    first_after = bisect_left(start_dates, earliest)
    if first_after == len(starts):
        # an edit past the last start (or no starts at all) recomputes everything
        window_starts = list(starts)
        window_ends = list(ends)
        boundary = None
    else:
        window_starts = list(starts[max(0, first_after - 1):])
        boundary = window_starts[0].date
        window_ends = [e for e in ends if e.date >= boundary]

    logger.info("Selected incremental window", extra={
        "earliest_edited": earliest.isoformat(),
        "boundary": boundary.isoformat() if boundary else None,
        "starts": len(window_starts),
        "ends": len(window_ends)
    })
    return CalculationWindow(
        mode=WindowMode.SUFFIX,
        starts=window_starts,
        ends=window_ends,
        earliest_edited=earliest
    )

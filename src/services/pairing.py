"""
Pairing service for matching period starts to period ends.

Typical usage:
    pairs = pair_starts_ends(starts, ends)
    previous_ends = previous_end_for_starts(starts, all_ends)
"""
from typing import Dict, List, Optional, Sequence

from src.models.event import CycleEvent, Pair


def pair_starts_ends(starts: Sequence[CycleEvent], ends: Sequence[CycleEvent]) -> List[Pair]:
    """
    Match each start with at most one end using a greedy two-pointer walk.

    For every start, ends dated before it are skipped (they belong to an
    earlier episode or are orphaned). The first remaining end dated before
    the next start is the match and is consumed, so no end is used twice.

    Args:
        starts: Start events sorted ascending by date
        ends: End events sorted ascending by date

    Returns:
        One Pair per start, in start order

    Example:
        >>> pairs = pair_starts_ends([jan_1_start, jan_29_start], [jan_5_end])
        >>> pairs[0].end == jan_5_end, pairs[1].end is None
        (True, True)
    """
    pairs = []
    j = 0
    for i, start in enumerate(starts):
        next_start_date = starts[i + 1].date if i + 1 < len(starts) else None

        while j < len(ends) and ends[j].date < start.date:
            j += 1

        chosen = None
        if j < len(ends) and (next_start_date is None or ends[j].date < next_start_date):
            chosen = ends[j]
            j += 1
        pairs.append(Pair(start=start, end=chosen))
    return pairs


def previous_end_for_starts(
    starts: Sequence[CycleEvent],
    ends: Sequence[CycleEvent]
) -> Dict[str, Optional[CycleEvent]]:
    """
    Find the nearest end strictly before each start.

    ``ends`` should be the whole history, not a recomputation window, so the
    relation stays correct when only a suffix of starts is rewritten.

    Args:
        starts: Start events sorted ascending by date
        ends: End events sorted ascending by date

    Returns:
        Mapping of start id to its preceding end, or None
    """
    previous = {}
    last_end = None
    k = 0
    for start in starts:
        while k < len(ends) and ends[k].date < start.date:
            last_end = ends[k]
            k += 1
        previous[start.id] = last_end
    return previous

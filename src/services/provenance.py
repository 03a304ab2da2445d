"""
Provenance validation service.

Start and end records are logged by a person; planned period and planned
ovulation records are created by automation. A record authored the other
way round most likely came from the wrong template and is flagged.
"""
from typing import List, Sequence, Set

from aws_lambda_powertools import Logger

from src.models.event import CycleEvent

logger = Logger()


def is_provenance_violation(event: CycleEvent) -> bool:
    """
    Check whether an event's author contradicts its kind.

    Args:
        event: Classified event

    Returns:
        True if a user kind was created by automation or a planned kind
        was created by a person. Daily notes never violate.
    """
    if event.kind.is_user_kind:
        return event.created_by_automation
    if event.kind.is_planned_kind:
        return not event.created_by_automation
    return False


def find_provenance_violations(events: Sequence[CycleEvent]) -> Set[str]:
    """Return the ids of events whose author contradicts their kind."""
    violations = {e.id for e in events if is_provenance_violation(e)}
    if violations:
        logger.info("Provenance violations found", extra={"count": len(violations)})
    return violations


def effective_events(
    events: Sequence[CycleEvent],
    violations: Set[str],
    strict: bool
) -> List[CycleEvent]:
    """
    Select the events used for pairing, duplicates, averages and predictions.

    In strict mode violating events are left out; otherwise they stay in.
    The unfiltered list remains the source for previous-end lookups.
    """
    if not strict:
        return list(events)
    return [e for e in events if e.id not in violations]

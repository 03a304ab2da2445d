"""
Event model definition for classified cycle records.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EventKind(str, Enum):
    """
    Kinds of tracked records.
    """
    START = "start"
    END = "end"
    PLANNED_PERIOD = "planned_period"
    PLANNED_OVULATION = "planned_ovulation"
    DAILY_NOTE = "daily_note"

    @property
    def is_user_kind(self) -> bool:
        """Kinds that a person is expected to log."""
        return self in (EventKind.START, EventKind.END)

    @property
    def is_planned_kind(self) -> bool:
        """Kinds that only automation is expected to create."""
        return self in (EventKind.PLANNED_PERIOD, EventKind.PLANNED_OVULATION)


class CycleEvent(BaseModel):
    """
    Represents a classified record: a kind on a calendar day in the
    reference timezone.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    kind: EventKind
    date: date
    created_by_automation: bool = False
    last_edited_at: datetime
    created_at: datetime
    position: int = 0  # insertion order in the store, used as sort tie-break


class Pair(BaseModel):
    """
    A start matched to at most one end.
    """
    model_config = ConfigDict(frozen=True)

    start: CycleEvent
    end: Optional[CycleEvent] = None

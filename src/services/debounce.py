"""
Trigger debouncing.

Edit webhooks tend to fire in bursts. A triggered invocation arriving less
than the minimum interval after the previous one is suppressed. Scheduled
runs (no trigger reason) are never suppressed. The decision is made from the
persisted state on every invocation; nothing is kept in memory.
"""
from datetime import datetime
from typing import Optional

from aws_lambda_powertools import Logger
from pydantic import BaseModel

from src.models.state import CalculationState
from src.services.state import StateRepository
from src.services.utils import to_utc
from src.utils.config import TrackerConfig

logger = Logger()


class DebounceDecision(BaseModel):
    """
    Outcome of a debounce check.
    """
    proceed: bool
    state: CalculationState
    elapsed_seconds: Optional[float] = None


class TriggerDebouncer:
    """Suppresses triggered runs that follow the previous one too closely."""

    def __init__(self, states: StateRepository, config: TrackerConfig):
        self.states = states
        self.config = config

    def check(self, state: CalculationState, reason: str, now: datetime) -> DebounceDecision:
        """
        Decide whether this invocation runs and record it as the latest trigger.

        Args:
            state: State loaded for this invocation
            reason: Trigger reason, empty for scheduled runs
            now: Current time

        Returns:
            DebounceDecision; ``proceed`` is False when suppressed
        """
        elapsed = None
        if state.last_triggered_at is not None:
            elapsed = (to_utc(now) - to_utc(state.last_triggered_at)).total_seconds()

        suppressed = bool(reason) and elapsed is not None and elapsed < self.config.min_trigger_interval_sec
        state = self.states.mark_triggered(state, now)

        if suppressed:
            logger.info("Debounced trigger", extra={
                "reason": reason,
                "elapsed_seconds": round(elapsed, 1),
                "min_interval_seconds": self.config.min_trigger_interval_sec
            })
        return DebounceDecision(proceed=not suppressed, state=state, elapsed_seconds=elapsed)

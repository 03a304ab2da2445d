"""
Calculation state repository.

The checkpoint timestamps live on a single record identified by a reserved
title. It is created on first use and reloaded from the store on every run.
"""
from datetime import datetime

from aws_lambda_powertools import Logger

from src.models.record import PropertyValue, Record
from src.models.state import CalculationState
from src.services.record_store import RecordStore
from src.services.utils import parse_timestamp, to_utc
from src.utils.config import TrackerConfig

logger = Logger()


class StateRepository:
    """Reads and writes the calculation checkpoint record."""

    def __init__(self, store: RecordStore, config: TrackerConfig):
        self.store = store
        self.config = config

    def _to_state(self, record: Record) -> CalculationState:
        props = self.config.properties
        return CalculationState(
            record_id=record.id,
            last_calculated_at=parse_timestamp(record.get_date(props.last_calculated_at)),
            last_triggered_at=parse_timestamp(record.get_date(props.last_triggered_at))
        )

    def load_or_create_state(self, now: datetime) -> CalculationState:
        """
        Load the state record, creating it if it does not exist yet.

        Args:
            now: Current time, used as the new record's date

        Returns:
            CalculationState
        """
        props = self.config.properties
        matches = self.store.query_filtered({props.title: self.config.state_title})
        if matches:
            return self._to_state(matches[0])

        logger.info("Creating calculation state record", extra={"title": self.config.state_title})
        record = self.store.create_record({
            props.title: PropertyValue.title(self.config.state_title),
            props.date: PropertyValue.date(to_utc(now).date())
        })
        return self._to_state(record)

    def mark_triggered(self, state: CalculationState, now: datetime) -> CalculationState:
        """Persist ``now`` as the last trigger time."""
        now = to_utc(now)
        self.store.update_record(state.record_id, {
            self.config.properties.last_triggered_at: PropertyValue.date(now)
        })
        return state.model_copy(update={"last_triggered_at": now})

    def mark_calculated(self, state: CalculationState, now: datetime) -> CalculationState:
        """Persist ``now`` as the checkpoint of the last successful run."""
        now = to_utc(now)
        self.store.update_record(state.record_id, {
            self.config.properties.last_calculated_at: PropertyValue.date(now)
        })
        logger.info("Checkpoint updated", extra={"last_calculated_at": now.isoformat()})
        return state.model_copy(update={"last_calculated_at": now})

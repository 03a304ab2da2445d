"""
Cycle calculation pipeline.

This module wires the calculation services together: it fetches records,
classifies and validates them, pairs starts with ends, selects the
recomputation window, computes statistics and flags, and writes the results
back onto the records.

Writes are collected per record and flushed once per record at the end of
the run, containing only the properties whose stored value differs. Each
flush is an independent update; a failure part-way leaves earlier records
updated, and the next run recomputes from the last checkpoint.

Typical usage:
    outcome = recalculate(store, config, reason="start-updated", now=now)
    if outcome.debounced:
        return
    print(outcome.result.prediction)
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from aws_lambda_powertools import Logger
from pydantic import BaseModel

from src.models.event import CycleEvent, EventKind
from src.models.record import PropertyValue, Record
from src.services.classifier import classify_records
from src.services.debounce import TriggerDebouncer
from src.services.pairing import pair_starts_ends
from src.services.planning import upsert_plans
from src.services.provenance import effective_events, find_provenance_violations
from src.services.quality import MetricFlag, find_duplicates, find_order_anomalies, latest_flags
from src.services.record_store import RecordStore
from src.services.state import StateRepository
from src.services.statistics import Prediction, compute_statistics, predict
from src.services.titles import title_for
from src.services.utils import filter_kind, last_or_none
from src.services.window import CalculationWindow, WindowMode, select_window
from src.utils.config import TrackerConfig

logger = Logger()


class CalculationResult(BaseModel):
    """
    Summary of one calculation run.
    """
    records: int
    events: int
    effective_events: int
    window_mode: WindowMode
    windowed_starts: int
    windowed_ends: int
    records_updated: int
    duplicates: List[str]
    order_anomalies: List[str]
    provenance_violations: List[str]
    average_cycle: int
    average_bleed: int
    prediction: Optional[Prediction] = None
    planned_records_created: List[EventKind] = []


class RunOutcome(BaseModel):
    """
    Result of an invocation: either debounced or a calculation result.
    """
    debounced: bool
    elapsed_seconds: Optional[float] = None
    result: Optional[CalculationResult] = None


class WriteBatch:
    """Accumulates property writes per record; later writes win."""

    def __init__(self):
        self._pending: Dict[str, Dict[str, PropertyValue]] = {}

    def set(self, record_id: str, properties: Dict[str, PropertyValue]) -> None:
        self._pending.setdefault(record_id, {}).update(properties)

    def flush(self, store: RecordStore, records: Dict[str, Record], order: Sequence[str]) -> int:
        """
        Send one partial update per record with changed properties.

        Args:
            store: Record store
            records: Current records by id, used to skip unchanged values
            order: Record ids in the order to write them

        Returns:
            Number of records updated
        """
        updated = 0
        for record_id in order:
            current = records[record_id].properties if record_id in records else {}
            changes = {
                name: value
                for name, value in self._pending.get(record_id, {}).items()
                if current.get(name) != value
            }
            if changes:
                store.update_record(record_id, changes)
                updated += 1
        return updated


class CycleCalculator:
    """Runs the calculation pipeline against a record store."""

    def __init__(self, store: RecordStore, config: TrackerConfig):
        self.store = store
        self.config = config
        self.props = config.properties

    def _reset_fields(self, event: CycleEvent) -> Dict[str, PropertyValue]:
        p = self.props
        fields = {p.title: PropertyValue.title(title_for(event, self.config))}
        for name in (
            p.error, p.template_error,
            p.latest_avg_cycle, p.latest_avg_bleed,
            p.latest_cycle, p.latest_bleed,
            p.latest_start, p.latest_end,
        ):
            fields[name] = PropertyValue.checkbox(False)
        return fields

    def _flag_property(self, flag: MetricFlag) -> str:
        return getattr(self.props, flag.value)

    def run(self, last_calculated_at: Optional[datetime]) -> CalculationResult:
        """
        Run one calculation pass.

        Args:
            last_calculated_at: Checkpoint of the previous successful run, or
                None to recompute everything

        Returns:
            CalculationResult

        Raises:
            RecordStoreError: If the store cannot be read or written
        """
        p = self.props
        records = self.store.query_all(p.date)
        events = classify_records(records, self.config)
        batch = WriteBatch()

        for event in events:
            batch.set(event.id, self._reset_fields(event))

        violations = find_provenance_violations(events)
        for event_id in violations:
            batch.set(event_id, {p.template_error: PropertyValue.checkbox(True)})
        effective = effective_events(events, violations, self.config.strict_templates)

        duplicates = find_duplicates(effective)
        for event_id in duplicates:
            batch.set(event_id, {p.error: PropertyValue.checkbox(True)})

        starts_all = filter_kind(effective, EventKind.START)
        ends_all = filter_kind(effective, EventKind.END)
        history_ends = filter_kind(events, EventKind.END)

        window = select_window(events, starts_all, ends_all, last_calculated_at)

        pairs_all = pair_starts_ends(starts_all, ends_all)
        pairs_win = pair_starts_ends(window.starts, window.ends)
        anomalies = find_order_anomalies(pairs_win)
        for event_id in anomalies:
            batch.set(event_id, {p.error: PropertyValue.checkbox(True)})

        stats = compute_statistics(starts_all, history_ends, pairs_all, self.config)

        for start in window.starts:
            batch.set(start.id, {
                p.cycle_days: PropertyValue.number(stats.cycle_lengths.get(start.id, 0)),
                p.avg_cycle: PropertyValue.number(stats.display_average_cycle),
                p.bleed_days: PropertyValue.number(0),
                p.avg_bleed: PropertyValue.number(0),
                p.next_period: PropertyValue.date(None),
                p.ovulation: PropertyValue.date(None)
            })

        prediction, planned = self._write_prediction(batch, window, starts_all, stats.prediction_base_cycle)

        for end in window.ends:
            bleed = stats.bleed_lengths.get(end.id, 0)
            batch.set(end.id, {
                p.bleed_days: PropertyValue.number(bleed),
                p.avg_bleed: PropertyValue.number(stats.average_bleed if bleed else 0),
                p.next_period: PropertyValue.date(None),
                p.ovulation: PropertyValue.date(None)
            })

        for record_id, flags in latest_flags(starts_all, ends_all, stats).items():
            batch.set(record_id, {self._flag_property(flag): PropertyValue.checkbox(True) for flag in flags})

        records_by_id = {record.id: record for record in records}
        updated = batch.flush(self.store, records_by_id, [e.id for e in events])

        logger.info("Calculation finished", extra={
            "records": len(records),
            "events": len(events),
            "window_mode": window.mode.value,
            "records_updated": updated
        })

        return CalculationResult(
            records=len(records),
            events=len(events),
            effective_events=len(effective),
            window_mode=window.mode,
            windowed_starts=len(window.starts),
            windowed_ends=len(window.ends),
            records_updated=updated,
            duplicates=sorted(duplicates),
            order_anomalies=sorted(anomalies),
            provenance_violations=sorted(violations),
            average_cycle=stats.average_cycle,
            average_bleed=stats.average_bleed,
            prediction=prediction,
            planned_records_created=planned
        )

    def _write_prediction(
        self,
        batch: WriteBatch,
        window: CalculationWindow,
        starts: List[CycleEvent],
        base_cycle: int
    ):
        last_start = last_or_none(starts)
        if last_start is None:
            return None, []
        if not (window.refreshes_prediction or window.includes(last_start)):
            return None, []

        prediction = predict(last_start, base_cycle, self.config.luteal_days)
        batch.set(last_start.id, {
            self.props.next_period: PropertyValue.date(prediction.next_period),
            self.props.ovulation: PropertyValue.date(prediction.ovulation)
        })

        planned = []
        if self.config.create_plan_records:
            planned = upsert_plans(self.store, prediction, self.config)
        return prediction, planned


def recalculate(store: RecordStore, config: TrackerConfig, reason: str, now: datetime) -> RunOutcome:
    """
    Run a debounced calculation and advance the checkpoint on success.

    Args:
        store: Record store
        config: Calculator configuration
        reason: Trigger reason, empty for scheduled runs
        now: Invocation time

    Returns:
        RunOutcome
    """
    states = StateRepository(store, config)
    state = states.load_or_create_state(now)

    decision = TriggerDebouncer(states, config).check(state, reason, now)
    if not decision.proceed:
        return RunOutcome(debounced=True, elapsed_seconds=decision.elapsed_seconds)

    result = CycleCalculator(store, config).run(decision.state.last_calculated_at)
    states.mark_calculated(decision.state, now)
    return RunOutcome(debounced=False, elapsed_seconds=decision.elapsed_seconds, result=result)

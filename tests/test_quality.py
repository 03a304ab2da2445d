"""Tests for provenance, duplicate, order and metric flag checks."""
from datetime import date

import pytest

from src.models.event import EventKind, Pair
from src.services.pairing import pair_starts_ends
from src.services.provenance import effective_events, find_provenance_violations, is_provenance_violation
from src.services.quality import MetricFlag, find_duplicates, find_order_anomalies, latest_flags
from src.services.statistics import compute_statistics
from tests.fakes import make_event


@pytest.mark.parametrize("kind, automated, violated", [
    (EventKind.START, False, False),
    (EventKind.START, True, True),
    (EventKind.END, True, True),
    (EventKind.PLANNED_PERIOD, True, False),
    (EventKind.PLANNED_PERIOD, False, True),
    (EventKind.PLANNED_OVULATION, False, True),
    (EventKind.DAILY_NOTE, True, False),
    (EventKind.DAILY_NOTE, False, False),
])
def test_provenance_rules(kind, automated, violated):
    """Test the expected author for each kind."""
    event = make_event("x", kind, date(2024, 1, 1), automated=automated)
    assert is_provenance_violation(event) is violated


def test_effective_events_only_filters_in_strict_mode():
    """Test that violators are dropped only when strict."""
    good = make_event("good", EventKind.START, date(2024, 1, 1))
    bad = make_event("bad", EventKind.START, date(2024, 1, 2), automated=True)
    violations = find_provenance_violations([good, bad])

    assert violations == {"bad"}
    assert [e.id for e in effective_events([good, bad], violations, strict=False)] == ["good", "bad"]
    assert [e.id for e in effective_events([good, bad], violations, strict=True)] == ["good"]


def test_duplicates_flag_every_member():
    """Test that both same-day starts are flagged."""
    events = [
        make_event("s1", EventKind.START, date(2024, 2, 10)),
        make_event("s2", EventKind.START, date(2024, 2, 10)),
        make_event("e1", EventKind.END, date(2024, 2, 10)),
        make_event("s3", EventKind.START, date(2024, 3, 10)),
    ]

    assert find_duplicates(events) == {"s1", "s2"}


def test_order_anomaly_detects_end_before_start():
    """Test the check for corrupted pairs."""
    start = make_event("s1", EventKind.START, date(2024, 1, 10))
    good_end = make_event("e1", EventKind.END, date(2024, 1, 12))
    bad_end = make_event("e2", EventKind.END, date(2024, 1, 8))

    assert find_order_anomalies([Pair(start=start, end=good_end)]) == set()
    assert find_order_anomalies([Pair(start=start, end=bad_end), Pair(start=start)]) == {"e2"}


def test_latest_flags(config):
    """Test which records carry each metric flag."""
    starts = [
        make_event("s1", EventKind.START, date(2024, 1, 1)),
        make_event("s2", EventKind.START, date(2024, 1, 29)),
        make_event("s3", EventKind.START, date(2024, 2, 26)),
    ]
    ends = [
        make_event("e1", EventKind.END, date(2024, 1, 5)),
        make_event("e2", EventKind.END, date(2024, 2, 2)),
    ]
    pairs = pair_starts_ends(starts, ends)
    stats = compute_statistics(starts, ends, pairs, config)

    flags = latest_flags(starts, ends, stats)

    assert flags["s3"] == {MetricFlag.LATEST_START, MetricFlag.LATEST_CYCLE, MetricFlag.LATEST_AVG_CYCLE}
    assert flags["e2"] == {MetricFlag.LATEST_END, MetricFlag.LATEST_BLEED, MetricFlag.LATEST_AVG_BLEED}
    assert "s1" not in flags


def test_latest_cycle_skips_starts_without_cycle(config):
    """Test that the latest cycle flag goes to the last start with a known cycle."""
    starts = [
        make_event("s1", EventKind.START, date(2024, 1, 1)),
        make_event("s2", EventKind.START, date(2024, 1, 29)),
        make_event("s3", EventKind.START, date(2024, 1, 30)),
    ]
    ends = [make_event("e1", EventKind.END, date(2024, 1, 5))]
    stats = compute_statistics(starts, ends, pair_starts_ends(starts, ends), config)
    stats = stats.model_copy(update={"cycle_lengths": {"s1": 0, "s2": 24, "s3": 0}})

    flags = latest_flags(starts, ends, stats)

    assert MetricFlag.LATEST_CYCLE in flags["s2"]
    assert MetricFlag.LATEST_CYCLE not in flags["s3"]


def test_no_average_flags_without_averages(config):
    """Test that average flags need a non-zero average."""
    starts = [make_event("s1", EventKind.START, date(2024, 1, 1))]
    stats = compute_statistics(starts, [], pair_starts_ends(starts, []), config)

    flags = latest_flags(starts, [], stats)

    assert flags == {"s1": {MetricFlag.LATEST_START}}

"""Tests for statistics calculation service."""
from datetime import date

import pytest

from src.models.event import EventKind, Pair
from src.services.pairing import pair_starts_ends
from src.services.statistics import (
    average_bleed,
    average_cycle,
    bleed_length,
    compute_statistics,
    cycle_length,
    display_average_cycle,
    predict,
    prediction_base_cycle,
    round_half_up,
)
from src.utils.config import TrackerConfig
from tests.fakes import make_event


def test_cycle_length_without_previous_end_is_zero():
    """Test that an unknown cycle length is 0."""
    s = make_event("s1", EventKind.START, date(2024, 1, 1))
    assert cycle_length(s, None) == 0


def test_cycle_length_counts_days_from_previous_end():
    """Test cycle length from previous end to start."""
    s = make_event("s2", EventKind.START, date(2024, 1, 29))
    e = make_event("e1", EventKind.END, date(2024, 1, 5))
    assert cycle_length(s, e) == 24


def test_cycle_length_never_negative():
    """Test that a previous end after the start clamps to 0."""
    s = make_event("s1", EventKind.START, date(2024, 1, 1))
    e = make_event("e1", EventKind.END, date(2024, 1, 3))
    assert cycle_length(s, e) == 0


def test_bleed_length_is_inclusive():
    """Test bleed length for the Jan 1 - Jan 5 scenario."""
    s = make_event("s1", EventKind.START, date(2024, 1, 1))
    e = make_event("e1", EventKind.END, date(2024, 1, 5))
    assert bleed_length(s, e) == 5


def test_bleed_length_floor_is_one():
    """Test that bleed length never drops below one day."""
    s = make_event("s1", EventKind.START, date(2024, 1, 5))
    same_day = make_event("e1", EventKind.END, date(2024, 1, 5))
    before = make_event("e2", EventKind.END, date(2024, 1, 1))
    assert bleed_length(s, same_day) == 1
    assert bleed_length(s, before) == 1


@pytest.mark.parametrize("value, expected", [(27.5, 28), (27.49, 27), (28.0, 28), (0.5, 1)])
def test_round_half_up(value, expected):
    """Test rounding halves upward."""
    assert round_half_up(value) == expected


def test_full_history_average_ignores_zero(config):
    """Test that unknown (0) cycle lengths are left out of the average."""
    assert average_cycle([0, 24, 25, 0, 30], config) == 26


def test_full_history_average_keeps_out_of_bounds_values(config):
    """Test that full-history averaging does not apply sanity bounds."""
    assert average_cycle([10, 30], config) == 20


def test_trailing_window_average_applies_bounds_and_window(trailing_config):
    """Test bounded trailing-window averaging."""
    values = [100, 25, 26, 5, 27, 28, 29]
    # out of [17, 60] dropped, then the last 3 of 25, 26, 27, 28, 29
    assert average_cycle(values, trailing_config) == 28


def test_trailing_window_bleed_uses_last_values(trailing_config):
    """Test bleed averaging over the trailing window."""
    assert average_bleed([10, 4, 5, 6], trailing_config) == 5


def test_averages_empty(config, trailing_config):
    """Test that empty inputs average to 0."""
    assert average_cycle([], config) == 0
    assert average_cycle([0, 0], config) == 0
    assert average_cycle([5, 90], trailing_config) == 0
    assert average_bleed([], config) == 0


def test_display_and_prediction_fallback_to_default(config):
    """Test that a zero average falls back to the default cycle."""
    assert display_average_cycle(0, config) == 28
    assert prediction_base_cycle(0, config) == 28
    assert display_average_cycle(31, config) == 31
    assert prediction_base_cycle(31, config) == 31


def test_prediction_base_never_zero():
    """Test that display and prediction share the fallback when the configured default is 0."""
    config = TrackerConfig(table_name="t", tracker_id="x", default_cycle=0)
    assert prediction_base_cycle(0, config) == 28
    assert display_average_cycle(0, config) == 28


def test_predict_next_period_and_ovulation():
    """Test prediction from the latest start."""
    s = make_event("s1", EventKind.START, date(2024, 1, 29))
    prediction = predict(s, 28, 14)
    assert prediction.next_period == date(2024, 2, 26)
    assert prediction.ovulation == date(2024, 2, 12)


def test_compute_statistics_scenario(config):
    """Test the two-start, one-end scenario with no earlier history."""
    starts = [
        make_event("s1", EventKind.START, date(2024, 1, 1)),
        make_event("s2", EventKind.START, date(2024, 1, 29)),
    ]
    ends = [make_event("e1", EventKind.END, date(2024, 1, 5))]
    pairs = pair_starts_ends(starts, ends)

    stats = compute_statistics(starts, ends, pairs, config)

    assert stats.cycle_lengths == {"s1": 0, "s2": 24}
    assert stats.bleed_lengths == {"e1": 5}
    assert stats.average_cycle == 24
    assert stats.average_bleed == 5
    assert stats.prediction_base_cycle == 24


def test_compute_statistics_without_cycles_uses_default(config):
    """Test that a single start predicts with the default cycle."""
    starts = [make_event("s1", EventKind.START, date(2024, 1, 1))]
    ends = [make_event("e1", EventKind.END, date(2024, 1, 5))]

    stats = compute_statistics(starts, ends, [Pair(start=starts[0], end=ends[0])], config)

    assert stats.average_cycle == 0
    assert stats.display_average_cycle == 28
    assert stats.prediction_base_cycle == 28


def test_compute_statistics_uses_history_ends_for_cycle_length(config):
    """Test that cycle lengths use ends outside the effective set."""
    starts = [make_event("s2", EventKind.START, date(2024, 1, 29))]
    history_ends = [make_event("e1", EventKind.END, date(2024, 1, 5), automated=True)]

    stats = compute_statistics(starts, history_ends, pair_starts_ends(starts, []), config)

    assert stats.cycle_lengths["s2"] == 24

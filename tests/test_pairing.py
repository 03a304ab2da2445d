"""Tests for start/end pairing."""
from datetime import date, timedelta

from src.models.event import EventKind
from src.services.pairing import pair_starts_ends, previous_end_for_starts
from tests.fakes import make_event


def start(event_id, day):
    return make_event(event_id, EventKind.START, day)


def end(event_id, day):
    return make_event(event_id, EventKind.END, day)


def test_pairs_start_with_end_before_next_start():
    """Test the basic scenario: two starts, one end inside the first episode."""
    starts = [start("s1", date(2024, 1, 1)), start("s2", date(2024, 1, 29))]
    ends = [end("e1", date(2024, 1, 5))]

    pairs = pair_starts_ends(starts, ends)

    assert len(pairs) == 2
    assert pairs[0].start.id == "s1"
    assert pairs[0].end.id == "e1"
    assert pairs[1].end is None


def test_end_before_first_start_is_orphaned():
    """Test that ends dated before every start are never matched."""
    starts = [start("s1", date(2024, 1, 10))]
    ends = [end("e0", date(2024, 1, 3)), end("e1", date(2024, 1, 14))]

    pairs = pair_starts_ends(starts, ends)

    assert pairs[0].end.id == "e1"


def test_end_after_next_start_goes_to_later_start():
    """Test that an end past the next start belongs to that next start."""
    starts = [start("s1", date(2024, 1, 1)), start("s2", date(2024, 1, 29))]
    ends = [end("e1", date(2024, 2, 2))]

    pairs = pair_starts_ends(starts, ends)

    assert pairs[0].end is None
    assert pairs[1].end.id == "e1"


def test_only_first_end_is_consumed_per_start():
    """Test that a second end in the same episode is left unmatched."""
    starts = [start("s1", date(2024, 1, 1)), start("s2", date(2024, 1, 29))]
    ends = [end("e1", date(2024, 1, 4)), end("e2", date(2024, 1, 6))]

    pairs = pair_starts_ends(starts, ends)

    assert pairs[0].end.id == "e1"
    assert pairs[1].end is None


def test_end_on_start_day_is_matched():
    """Test that an end on the same day as its start is eligible."""
    pairs = pair_starts_ends([start("s1", date(2024, 1, 1))], [end("e1", date(2024, 1, 1))])

    assert pairs[0].end.id == "e1"


def test_end_on_next_start_day_is_not_matched_to_previous():
    """Test that the next start's date is an exclusive upper bound."""
    starts = [start("s1", date(2024, 1, 1)), start("s2", date(2024, 1, 29))]
    ends = [end("e1", date(2024, 1, 29))]

    pairs = pair_starts_ends(starts, ends)

    assert pairs[0].end is None
    assert pairs[1].end.id == "e1"


def test_same_day_duplicate_starts_do_not_share_an_end():
    """Test that duplicate starts cannot both claim one end."""
    starts = [start("s1", date(2024, 2, 10)), start("s2", date(2024, 2, 10))]
    ends = [end("e1", date(2024, 2, 14))]

    pairs = pair_starts_ends(starts, ends)

    matched = [p.end.id for p in pairs if p.end is not None]
    assert matched == ["e1"]


def test_pairing_is_injective_and_local():
    """Test injectivity and locality over an irregular history."""
    base = date(2023, 6, 1)
    start_offsets = [0, 3, 30, 31, 62, 95, 96, 130]
    end_offsets = [-4, 2, 4, 5, 33, 60, 61, 70, 97, 99, 140, 200]
    starts = [start(f"s{i}", base + timedelta(days=d)) for i, d in enumerate(start_offsets)]
    ends = [end(f"e{i}", base + timedelta(days=d)) for i, d in enumerate(end_offsets)]

    pairs = pair_starts_ends(starts, ends)

    matched = [p.end.id for p in pairs if p.end is not None]
    assert len(matched) == len(set(matched))
    for i, pair in enumerate(pairs):
        if pair.end is None:
            continue
        assert pair.start.date <= pair.end.date
        if i + 1 < len(starts):
            assert pair.end.date < starts[i + 1].date


def test_pairing_empty_inputs():
    """Test pairing with nothing to pair."""
    assert pair_starts_ends([], [end("e1", date(2024, 1, 1))]) == []
    assert pair_starts_ends([start("s1", date(2024, 1, 1))], [])[0].end is None


def test_previous_end_is_nearest_strictly_before():
    """Test the previous-end relation used for cycle lengths."""
    starts = [
        start("s1", date(2024, 1, 1)),
        start("s2", date(2024, 1, 29)),
        start("s3", date(2024, 2, 26)),
    ]
    ends = [
        end("e1", date(2024, 1, 5)),
        end("e2", date(2024, 2, 1)),
        end("e3", date(2024, 2, 26)),
    ]

    previous = previous_end_for_starts(starts, ends)

    assert previous["s1"] is None
    assert previous["s2"].id == "e1"
    assert previous["s3"].id == "e2"  # same-day end does not precede its start

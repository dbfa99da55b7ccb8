from __future__ import annotations

import random
from datetime import timedelta

import pytest

from residence_analyze.errors import InvalidArgumentError, InvalidInputError
from residence_analyze.models import TimeInterval
from residence_analyze.segments import covered_seconds, merge_intervals, segment_runs, time_segments


def _iv(base, start_s: float, end_s: float) -> TimeInterval:
    return TimeInterval(start=base + timedelta(seconds=start_s), end=base + timedelta(seconds=end_s))


def test_runs_are_anchored_on_first_event(make_event):
    # 0 -> 600 stays within 900 of the anchor, 1200 does not
    events = [make_event(0), make_event(600), make_event(1200)]
    assert segment_runs(events, 900) == [(0, 1), (2, 2)]


def test_drift_splits_even_when_neighbours_are_close(make_event):
    events = [make_event(t) for t in (0, 100, 200, 300, 400)]
    assert segment_runs(events, 250) == [(0, 2), (3, 4)]


def test_large_jump_splits(make_event):
    events = [make_event(0), make_event(60), make_event(10_000), make_event(10_030)]
    segs = time_segments(events, 120)
    assert len(segs) == 2
    assert segs[0].start == events[0].timestamp
    assert segs[0].end == events[1].timestamp
    assert segs[1].start == events[2].timestamp
    assert segs[1].end == events[3].timestamp


def test_single_event_closes_as_zero_length_interval(make_event):
    segs = time_segments([make_event(42)], 900)
    assert len(segs) == 1
    assert segs[0].start == segs[0].end
    assert segs[0].duration_seconds == 0


def test_equal_timestamps_never_split(make_event):
    events = [make_event(10), make_event(10), make_event(10), make_event(11)]
    assert segment_runs(events, 0) == [(0, 2), (3, 3)]


def test_empty_input_rejected():
    with pytest.raises(InvalidInputError):
        segment_runs([], 10)


def test_negative_tolerance_rejected(make_event):
    with pytest.raises(InvalidArgumentError):
        segment_runs([make_event(0)], -1)


def test_runs_cover_every_event_without_overlap(make_event):
    rng = random.Random(7)
    t = 0.0
    events = []
    for _ in range(300):
        t += rng.choice([0, 5, 30, 120, 600, 4000])
        events.append(make_event(t))

    runs = segment_runs(events, 300)
    assert sum(high - low + 1 for low, high in runs) == len(events)
    assert runs[0][0] == 0
    assert runs[-1][1] == len(events) - 1
    for (_, prev_high), (low, _) in zip(runs, runs[1:]):
        assert low == prev_high + 1

    segs = time_segments(events, 300)
    for seg in segs:
        assert seg.end_s >= seg.start_s
    for a, b in zip(segs, segs[1:]):
        assert a.end_s < b.start_s


def test_interval_rejects_end_before_start(base_time):
    with pytest.raises(InvalidArgumentError):
        _iv(base_time, 10, 5)


def test_merge_disjoint_keeps_everything_sorted(base_time):
    a = [_iv(base_time, 0, 10), _iv(base_time, 100, 110)]
    b = [_iv(base_time, 50, 60), _iv(base_time, 200, 210)]
    merged = merge_intervals(a, b)
    assert merged == [a[0], b[0], a[1], b[1]]
    assert len(merged) == len(a) + len(b)


def test_merge_coalesces_overlap(base_time):
    a = [_iv(base_time, 0, 100)]
    b = [_iv(base_time, 50, 150), _iv(base_time, 300, 310)]
    merged = merge_intervals(a, b)
    assert merged == [_iv(base_time, 0, 150), _iv(base_time, 300, 310)]
    assert len(merged) < len(a) + len(b)


def test_merge_coalesces_touching(base_time):
    merged = merge_intervals([_iv(base_time, 0, 100)], [_iv(base_time, 100, 200)])
    assert merged == [_iv(base_time, 0, 200)]


def test_merge_contained_interval_keeps_outer_end(base_time):
    merged = merge_intervals([_iv(base_time, 0, 500)], [_iv(base_time, 100, 200), _iv(base_time, 300, 400)])
    assert merged == [_iv(base_time, 0, 500)]


def test_merge_drains_longer_input(base_time):
    a = [_iv(base_time, 0, 10)]
    b = [_iv(base_time, 20, 30), _iv(base_time, 40, 50), _iv(base_time, 60, 70)]
    assert merge_intervals(a, b) == a + b
    assert merge_intervals(a, []) == a
    assert merge_intervals([], b) == b


def _random_intervals(rng: random.Random, base, n: int) -> list[TimeInterval]:
    out = []
    t = 0.0
    for _ in range(n):
        t += rng.uniform(1, 500)
        length = rng.uniform(0, 300)
        out.append(_iv(base, t, t + length))
        t += length
    return out


def test_merge_is_commutative_associative_idempotent(base_time):
    rng = random.Random(11)
    for _ in range(20):
        a = _random_intervals(rng, base_time, 8)
        b = _random_intervals(rng, base_time, 6)
        c = _random_intervals(rng, base_time, 5)

        assert merge_intervals(a, b) == merge_intervals(b, a)
        assert merge_intervals(a, merge_intervals(b, c)) == merge_intervals(merge_intervals(a, b), c)
        assert merge_intervals(a, a) == a


def test_merge_covered_duration_bounds(base_time):
    rng = random.Random(3)
    for _ in range(20):
        a = _random_intervals(rng, base_time, 7)
        b = _random_intervals(rng, base_time, 7)
        total = covered_seconds(merge_intervals(a, b))
        da = covered_seconds(a)
        db = covered_seconds(b)
        assert total >= max(da, db) - 1e-6
        assert total <= da + db + 1e-6

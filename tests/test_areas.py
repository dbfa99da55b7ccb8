from __future__ import annotations

from types import MappingProxyType

import pytest

from residence_analyze.areas import (
    DiscoveryParams,
    analyze_timeline,
    assign_areas,
    discover_areas,
    time_vs_area,
)
from residence_analyze.errors import InvalidArgumentError, InvalidInputError, UnknownTagError
from residence_analyze.timeline import Timeline

# min_connections = 10, a tag needs more than 10 segments to qualify
PARAMS = DiscoveryParams(interval_seconds=60, min_stay_seconds=600)


def _points(make_event, tag, start, n, step=120, **kw):
    """n events, each far enough from the next to form its own 60s segment."""

    return [make_event(start + step * k, tag=tag, **kw) for k in range(n)]


def _pairs(make_event, tag, start, n, step=120):
    """n two-event segments [t-10, t+10] centred on start + step*k."""

    out = []
    for k in range(n):
        t = start + step * k
        out += [make_event(t - 10, tag=tag), make_event(t + 10, tag=tag)]
    return out


@pytest.fixture
def scenario(make_event):
    events = (
        _points(make_event, "A", 0, 12)
        + _pairs(make_event, "B", 0, 12)  # overlaps A, more traffic
        + _points(make_event, "C", 100_000, 12)  # separate place
        + [make_event(50_000 + k, tag="E") for k in range(15)]  # busy but one short stay
        + _points(make_event, "D", 200_000, 3)  # too few connections
    )
    return Timeline.from_events(events)


def test_timeline_groups_and_sorts(make_event):
    events = [make_event(30, tag="X"), make_event(10, tag="Y"), make_event(20, tag="X")]
    tl = Timeline.from_events(events)
    assert list(tl.groups) == ["X", "Y"]
    assert [e.epoch_s for e in tl.events] == sorted(e.epoch_s for e in events)
    assert [e.epoch_s for e in tl.group("X").events] == sorted([events[0].epoch_s, events[2].epoch_s])
    assert tl.num_connections("X") == 2
    assert len(tl.time_segments("X", 5)) == 2


def test_timeline_unknown_tag(make_event):
    tl = Timeline.from_events([make_event(0, tag="X")])
    with pytest.raises(UnknownTagError):
        tl.num_connections("nope")
    with pytest.raises(KeyError):
        tl.time_segments("nope", 60)


def test_timeline_rejects_empty():
    with pytest.raises(InvalidInputError):
        Timeline.from_events([])


def test_discovery_merges_overlapping_tags(scenario):
    result = discover_areas(scenario.groups, PARAMS)

    assert result.assignment == {"B": 1, "A": 1, "C": 2}
    assert result.area_ids == [1, 2]
    assert result.areas[0].tags == ["B", "A"]
    assert result.areas[1].tags == ["C"]


def test_discovery_accepts_any_mapping_of_groups(scenario):
    result = discover_areas(MappingProxyType(scenario.groups), PARAMS)
    assert result.assignment == {"B": 1, "A": 1, "C": 2}
    assert discover_areas(list(scenario.groups.values()), PARAMS).assignment == result.assignment


def test_area_segments_stay_sorted_and_disjoint(scenario):
    result = discover_areas(scenario.groups, PARAMS)
    for area in result.areas:
        for a, b in zip(area.segments, area.segments[1:]):
            assert a.end_s < b.start_s


def test_assignment_retags_events(scenario):
    result, events = analyze_timeline(scenario, PARAMS)
    by_tag = {}
    for ev in events:
        by_tag.setdefault(ev.tag, set()).add(ev.area_id)
    assert by_tag == {"A": {1}, "B": {1}, "C": {2}, "D": {0}, "E": {0}}
    # originals stay untouched
    assert all(ev.area_id == 0 for ev in scenario.events)

    rows = time_vs_area(events)
    assert len(rows) == len(events)
    assert [t for t, _ in rows] == sorted(t for t, _ in rows)


def test_equal_traffic_ties_break_by_tag(make_event):
    events = _points(make_event, "Z", 0, 12) + _points(make_event, "M", 50_000, 12)
    result = discover_areas(Timeline.from_events(events).groups, PARAMS)
    assert result.assignment == {"M": 1, "Z": 2}


def test_tag_joins_first_overlapping_area(make_event):
    events = (
        _pairs(make_event, "P", 0, 12)
        + _pairs(make_event, "Q", 10_000, 12)
        # R overlaps both P (first point) and Q (remaining points)
        + [make_event(0, tag="R")]
        + _points(make_event, "R", 10_000, 11)
    )
    result = discover_areas(Timeline.from_events(events).groups, PARAMS)
    assert result.assignment == {"P": 1, "Q": 2, "R": 1}
    assert len(result.areas) == 2


def test_discovery_rejects_non_positive_interval(scenario):
    with pytest.raises(InvalidArgumentError):
        discover_areas(scenario.groups, DiscoveryParams(interval_seconds=0))
    with pytest.raises(InvalidArgumentError):
        discover_areas(scenario.groups, DiscoveryParams(interval_seconds=-5))
    with pytest.raises(InvalidArgumentError):
        discover_areas(scenario.groups, DiscoveryParams(interval_seconds=60, min_stay_seconds=0))


def test_no_repeated_locations_means_no_areas(make_event):
    events = [make_event(60 * k, tag=f"T{k}") for k in range(50)]
    result = discover_areas(Timeline.from_events(events).groups, DiscoveryParams(interval_seconds=1))
    assert result.areas == []
    assert result.assignment == {}


def test_short_stay_is_discarded(make_event):
    # 00:00, 00:10, 00:20 on one tag with a 15 minute interval
    events = [make_event(0), make_event(600), make_event(1200)]
    tl = Timeline.from_events(events)

    segs = tl.time_segments("A", 900)
    assert [(s.start_s - events[0].epoch_s, s.end_s - events[0].epoch_s) for s in segs] == [(0, 600), (1200, 1200)]

    result, retagged = analyze_timeline(tl, DiscoveryParams(interval_seconds=900))
    assert result.areas == []
    assert all(ev.area_id == 0 for ev in retagged)


def test_enough_connections_but_short_stay_is_skipped(make_event):
    # 4 connections reach ceil(3600 / 900) but fall into a single segment
    events = [make_event(t) for t in (0, 100, 200, 300)]
    result = discover_areas(Timeline.from_events(events).groups, DiscoveryParams(interval_seconds=900))
    assert result.areas == []


def test_assign_areas_defaults_to_zero(make_event):
    events = [make_event(0, tag="A"), make_event(1, tag="B")]
    out = assign_areas(events, {"A": 3})
    assert [e.area_id for e in out] == [3, 0]

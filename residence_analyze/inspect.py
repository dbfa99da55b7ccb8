"""Inspect a loaded connection log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from residence_analyze.timeline import Timeline
from residence_analyze.timeutils import DeltaStats, delta_stats


@dataclass(frozen=True, slots=True)
class InspectResult:
    """High-level log inspection result."""

    events: int
    tags: int
    min_time: datetime
    max_time: datetime
    delta: DeltaStats | None
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
    duplicate_times: int
    top_tags: list[tuple[str, int]]


def inspect_timeline(timeline: Timeline, top: int = 10) -> InspectResult:
    """Inspect an already-built timeline."""

    events = timeline.events
    times = [ev.epoch_s for ev in events]
    dupe = 0
    for i in range(1, len(times)):
        if times[i] == times[i - 1]:
            dupe += 1

    ranked = sorted(
        ((g.tag, g.num_connections()) for g in timeline.groups.values()),
        key=lambda kv: (-kv[1], kv[0]),
    )
    lats = [ev.latitude for ev in events]
    lons = [ev.longitude for ev in events]
    return InspectResult(
        events=len(events),
        tags=len(timeline.groups),
        min_time=events[0].timestamp,
        max_time=events[-1].timestamp,
        delta=delta_stats(times),
        min_lat=min(lats),
        max_lat=max(lats),
        min_lon=min(lons),
        max_lon=max(lons),
        duplicate_times=dupe,
        top_tags=ranked[:top],
    )

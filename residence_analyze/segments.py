"""Stay interval extraction and merging."""

from __future__ import annotations

from typing import Iterable, Sequence

from residence_analyze.errors import InvalidArgumentError, InvalidInputError
from residence_analyze.models import Event, TimeInterval


def segment_runs(events: Sequence[Event], tolerance_s: float) -> list[tuple[int, int]]:
    """Split time-sorted events into runs that stay within a gap tolerance.

    Each event is compared against the first event of the current run (the
    anchor), not its predecessor: a run keeps growing while
    ``t[i] - t[low] <= tolerance_s`` and closes on the first event beyond it.
    The last run is always closed, so a lone event yields ``(i, i)``.

    Args:
        events: Events sorted by time.
        tolerance_s: Maximum distance from the run anchor, in seconds.

    Returns:
        Inclusive ``(low, high)`` index ranges in chronological order.

    Raises:
        InvalidInputError: If ``events`` is empty.
        InvalidArgumentError: If ``tolerance_s`` is negative.
    """

    if not events:
        raise InvalidInputError("事件序列为空，无法切分时间段")
    if tolerance_s < 0:
        raise InvalidArgumentError(f"无效的时间容差：{tolerance_s}")

    runs: list[tuple[int, int]] = []
    low = 0
    high = 0
    anchor_s = events[0].epoch_s
    for i in range(1, len(events)):
        t = events[i].epoch_s
        if t - anchor_s > tolerance_s:
            runs.append((low, high))
            low = i
            anchor_s = t
        high = i
    runs.append((low, high))
    return runs


def time_segments(events: Sequence[Event], tolerance_s: float) -> list[TimeInterval]:
    """Return the stay intervals of time-sorted events (see ``segment_runs``)."""

    return [
        TimeInterval(start=events[low].timestamp, end=events[high].timestamp)
        for low, high in segment_runs(events, tolerance_s)
    ]


def merge_intervals(a: Sequence[TimeInterval], b: Sequence[TimeInterval]) -> list[TimeInterval]:
    """Union two sorted, non-overlapping interval lists.

    Intervals that overlap or touch are coalesced. When two starts are equal
    the interval from ``b`` is consumed first; the resulting set is the same
    either way.

    Callers detect overlap between ``a`` and ``b`` by comparing
    ``len(result)`` with ``len(a) + len(b)``.
    """

    merged: list[TimeInterval] = []
    i = 0
    j = 0
    while i < len(a) or j < len(b):
        if j >= len(b) or (i < len(a) and a[i].start_s < b[j].start_s):
            cand = a[i]
            i += 1
        else:
            cand = b[j]
            j += 1

        if not merged or merged[-1].end_s < cand.start_s:
            merged.append(cand)
        elif merged[-1].end_s < cand.end_s:
            merged[-1] = TimeInterval(start=merged[-1].start, end=cand.end)
    return merged


def covered_seconds(intervals: Iterable[TimeInterval]) -> float:
    """Sum of interval durations in seconds."""

    return sum(iv.duration_seconds for iv in intervals)

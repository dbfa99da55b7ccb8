"""Residential area discovery over the busiest location tags."""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from residence_analyze.errors import InvalidArgumentError
from residence_analyze.models import (
    MIN_STAY_SECONDS,
    AreaAssignment,
    CandidateArea,
    Event,
    LocationGroup,
)
from residence_analyze.segments import merge_intervals
from residence_analyze.timeline import Timeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveryParams:
    """Parameters controlling area discovery."""

    # Segmentation gap tolerance, also the assumed dwell per segment.
    interval_seconds: float
    # A tag must be estimated to hold the user for longer than this to count.
    min_stay_seconds: float = MIN_STAY_SECONDS

    def validate(self) -> None:
        if self.interval_seconds <= 0:
            raise InvalidArgumentError(f"interval 必须为正数：{self.interval_seconds}")
        if self.min_stay_seconds <= 0:
            raise InvalidArgumentError(f"min_stay_seconds 必须为正数：{self.min_stay_seconds}")

    @property
    def min_connections(self) -> int:
        """Fewest events a tag needs before its stay estimate can exceed the minimum."""

        return math.ceil(self.min_stay_seconds / self.interval_seconds)


@dataclass(slots=True)
class DiscoveryResult:
    """Tag -> area id mapping plus the candidate areas in creation order."""

    assignment: AreaAssignment = field(default_factory=dict)
    areas: list[CandidateArea] = field(default_factory=list)

    @property
    def area_ids(self) -> list[int]:
        return [a.area_id for a in self.areas]


def _ranked(groups: Iterable[LocationGroup]) -> list[tuple[int, str, LocationGroup]]:
    # Max-heap on connection count; equal counts pop in ascending tag order.
    heap = [(-g.num_connections(), g.tag, g) for g in groups]
    heapq.heapify(heap)
    return heap


def discover_areas(
    groups: Iterable[LocationGroup] | Mapping[str, LocationGroup],
    params: DiscoveryParams,
) -> DiscoveryResult:
    """Greedily cluster the busiest location tags into residential areas.

    Tags are visited from most to fewest connections. A tag's stay estimate is
    ``len(segments) * interval``; tags at or below ``min_stay_seconds`` are
    skipped. A qualifying tag joins the first existing area (in creation
    order) whose stays overlap its own, otherwise it opens a new area.
    The loop stops as soon as a tag has fewer than ``params.min_connections``
    events, since no later tag can have more.

    Args:
        groups: Location groups with events already sorted by time.
        params: Discovery parameters.

    Returns:
        DiscoveryResult with the tag assignment and the candidate areas.

    Raises:
        InvalidArgumentError: If the interval or minimum stay is not positive.
    """

    params.validate()
    if isinstance(groups, Mapping):
        groups = groups.values()

    result = DiscoveryResult()
    heap = _ranked(groups)
    min_count = params.min_connections

    while heap:
        neg_count, tag, group = heapq.heappop(heap)
        count = -neg_count
        if count < min_count:
            logger.debug("停止：%s 仅 %s 条记录（需要 >= %s）", tag, count, min_count)
            break

        segments = group.time_segments(params.interval_seconds)
        stay_s = len(segments) * params.interval_seconds
        if stay_s <= params.min_stay_seconds:
            logger.debug("跳过 %s：估计停留 %.0fs", tag, stay_s)
            continue

        for area in result.areas:
            merged = merge_intervals(segments, area.segments)
            if len(merged) < len(segments) + len(area.segments):
                area.segments = merged
                area.tags.append(tag)
                result.assignment[tag] = area.area_id
                logger.debug("%s 并入区域 %s", tag, area.area_id)
                break
        else:
            area = CandidateArea(area_id=len(result.areas) + 1, segments=list(segments), tags=[tag])
            result.areas.append(area)
            result.assignment[tag] = area.area_id
            logger.debug("%s 新建区域 %s（%s 段）", tag, area.area_id, len(segments))

    logger.info("识别到 %s 个候选居住区域，涉及 %s 个位置标签", len(result.areas), len(result.assignment))
    return result


def assign_areas(events: Iterable[Event], assignment: Mapping[str, int]) -> list[Event]:
    """Return copies of ``events`` retagged with their area id (0 if unassigned)."""

    return [replace(ev, area_id=assignment.get(ev.tag, 0)) for ev in events]


def time_vs_area(events: Sequence[Event]) -> list[tuple[datetime, int]]:
    """(event time, area id) rows in the given (chronological) order."""

    return [(ev.timestamp, ev.area_id) for ev in events]


def analyze_timeline(timeline: Timeline, params: DiscoveryParams) -> tuple[DiscoveryResult, list[Event]]:
    """Run discovery on a timeline and retag its sorted events."""

    result = discover_areas(timeline.groups, params)
    return result, assign_areas(timeline.events, result.assignment)

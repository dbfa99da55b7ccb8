"""Data models for connection events, stay intervals and candidate areas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

from residence_analyze.errors import InvalidArgumentError


@dataclass(frozen=True, slots=True)
class Event:
    """A single geotagged connection event.

    Attributes:
        timestamp: Timezone-aware event time.
        longitude: Longitude in decimal degrees.
        latitude: Latitude in decimal degrees.
        tag: Discrete location identifier, e.g. the serving cell.
        area_id: Residential area the event belongs to; 0 means unassigned.
    """

    timestamp: datetime
    longitude: float
    latitude: float
    tag: str
    area_id: int = 0

    @property
    def epoch_s(self) -> float:
        """Unix epoch seconds as float."""

        return self.timestamp.timestamp()


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """A contiguous stay, ``start <= end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end.timestamp() < self.start.timestamp():
            raise InvalidArgumentError(f"区间结束早于开始：{self.start} > {self.end}")

    @property
    def start_s(self) -> float:
        return self.start.timestamp()

    @property
    def end_s(self) -> float:
        return self.end.timestamp()

    @property
    def duration_seconds(self) -> float:
        """Interval length in seconds."""

        return self.end_s - self.start_s


@dataclass(slots=True)
class LocationGroup:
    """All events sharing one location tag.

    ``sort_events`` must run once before segments are extracted; the
    timeline does that when it builds the groups.
    """

    tag: str
    events: list[Event] = field(default_factory=list)

    def add(self, event: Event) -> None:
        self.events.append(event)

    def sort_events(self) -> None:
        self.events.sort(key=lambda e: e.epoch_s)

    def num_connections(self) -> int:
        """Number of logged events for this tag."""

        return len(self.events)

    def time_segments(self, tolerance_s: float) -> list[TimeInterval]:
        from residence_analyze.segments import time_segments

        return time_segments(self.events, tolerance_s)


@dataclass(slots=True)
class CandidateArea:
    """A candidate residential area built from merged stays.

    Attributes:
        area_id: Positive id, assigned in discovery order.
        segments: Sorted, pairwise non-overlapping stays.
        tags: Location tags absorbed into this area, in absorption order.
    """

    area_id: int
    segments: list[TimeInterval]
    tags: list[str] = field(default_factory=list)


AreaAssignment = dict[str, int]

DEFAULT_TZ: Final[str] = "Asia/Taipei"
EVENT_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
DEFAULT_INTERVAL_SECONDS: Final[float] = 180.0
MIN_STAY_SECONDS: Final[float] = 3600.0

"""Stay detection from point-to-point movement speed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from residence_analyze.errors import InvalidArgumentError, InvalidInputError, TimeOrderingViolation
from residence_analyze.geo import haversine_m
from residence_analyze.models import Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SpeedParams:
    """Parameters controlling speed-based segmentation."""

    # 45 km/h, a generous upper bound for moving around on foot or by scooter.
    speed_limit_mps: float = 12.5
    # Airline distance underestimates the travelled path.
    distance_upscale: float = 1.1
    min_dwell_seconds: float = 600.0

    def validate(self) -> None:
        if self.speed_limit_mps <= 0:
            raise InvalidArgumentError(f"速度阈值必须为正数：{self.speed_limit_mps}")
        if self.distance_upscale <= 0:
            raise InvalidArgumentError(f"距离放大系数必须为正数：{self.distance_upscale}")
        if self.min_dwell_seconds < 0:
            raise InvalidArgumentError(f"最小停留时长不能为负：{self.min_dwell_seconds}")


@dataclass(frozen=True, slots=True)
class SpeedStay:
    """A stay found by speed segmentation: events ``low..high`` inclusive."""

    low: int
    high: int
    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        return self.end.timestamp() - self.start.timestamp()

    @property
    def points(self) -> int:
        return self.high - self.low + 1


@dataclass(frozen=True, slots=True)
class SpeedSample:
    """Implied speed of the step that ended at ``timestamp``."""

    timestamp: datetime
    speed_kmh: float


def _elapsed_s(prev: Event, cur: Event, index: int) -> float:
    dt = cur.epoch_s - prev.epoch_s
    if dt < 0:
        raise TimeOrderingViolation(
            f"事件时间倒序：第 {index - 1} 条 {prev.timestamp} 晚于第 {index} 条 {cur.timestamp}"
        )
    return dt


def segment_by_speed(events: Sequence[Event], params: SpeedParams | None = None) -> list[SpeedStay]:
    """Cut the chronological event stream wherever the user moved too fast.

    For each step ``i - 1 -> i`` the great-circle distance, scaled by
    ``distance_upscale``, is divided by the elapsed time. Steps with zero
    distance or zero elapsed time count as no movement. A step faster than
    ``speed_limit_mps`` closes the open range ``[low, i - 1]``, which is kept
    only if it lasted longer than ``min_dwell_seconds``. The final open range
    is flushed the same way.

    Raises:
        InvalidInputError: If ``events`` is empty.
        InvalidArgumentError: If parameters are out of range.
        TimeOrderingViolation: If two adjacent events go back in time.
    """

    params = params or SpeedParams()
    params.validate()
    if not events:
        raise InvalidInputError("事件序列为空，无法按速度切分")

    stays: list[SpeedStay] = []

    def close(low: int, high: int) -> None:
        stay = SpeedStay(low=low, high=high, start=events[low].timestamp, end=events[high].timestamp)
        if stay.duration_seconds > params.min_dwell_seconds:
            stays.append(stay)

    low = 0
    for i in range(1, len(events)):
        prev, cur = events[i - 1], events[i]
        dt = _elapsed_s(prev, cur, i)
        shift_m = haversine_m(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        if shift_m == 0 or dt == 0:
            continue

        speed = shift_m * params.distance_upscale / dt
        if speed > params.speed_limit_mps:
            close(low, i - 1)
            low = i

    close(low, len(events) - 1)
    logger.info("按速度识别到 %s 段停留", len(stays))
    return stays


def speed_series(events: Sequence[Event]) -> list[SpeedSample]:
    """Implied (unscaled) speed in km/h for every step with positive elapsed time.

    Raises:
        TimeOrderingViolation: If two adjacent events go back in time.
    """

    out: list[SpeedSample] = []
    for i in range(1, len(events)):
        prev, cur = events[i - 1], events[i]
        dt = _elapsed_s(prev, cur, i)
        if dt == 0:
            continue
        shift_m = haversine_m(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        out.append(SpeedSample(timestamp=cur.timestamp, speed_kmh=3.6 * shift_m / dt))
    return out

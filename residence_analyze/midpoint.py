"""Representative centers of residential areas and distance distributions.

Two estimators are computed locally:

- ``gravity``: spherical center of mass (mean of unit vectors). Handles the
  180th meridian correctly.
- ``average``: arithmetic mean of latitude and longitude. Fine for small
  areas away from the antimeridian.

The center of minimum distance is computed by an external calculator
(http://www.geomidpoint.com/); ``area_coordinates`` prepares its input and
``summarize_area`` accepts the returned center under the ``mindist`` label.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Iterable, Literal, Mapping, Sequence

from residence_analyze.errors import EmptyAreaError, InvalidArgumentError
from residence_analyze.geo import from_unit_vector, haversine_m, to_unit_vector
from residence_analyze.models import Event

logger = logging.getLogger(__name__)

MidpointMethod = Literal["gravity", "average"]
MIDPOINT_METHODS: Final[tuple[str, ...]] = ("gravity", "average")
MINDIST_LABEL: Final[str] = "mindist"
DEFAULT_CDF_SAMPLES: Final[int] = 50


def _members(events: Iterable[Event], area_id: int) -> list[Event]:
    members = [ev for ev in events if ev.area_id == area_id]
    if not members:
        raise EmptyAreaError(f"区域 {area_id} 没有任何记录")
    return members


def center_of_gravity(events: Iterable[Event], area_id: int) -> tuple[float, float]:
    """Spherical center of mass of an area's events, as (lat, lon) degrees."""

    members = _members(events, area_id)
    sx = sy = sz = 0.0
    for ev in members:
        x, y, z = to_unit_vector(ev.latitude, ev.longitude)
        sx += x
        sy += y
        sz += z
    n = len(members)
    return from_unit_vector(sx / n, sy / n, sz / n)


def average_lat_lon(events: Iterable[Event], area_id: int) -> tuple[float, float]:
    """Arithmetic mean latitude and longitude of an area's events."""

    members = _members(events, area_id)
    n = len(members)
    return sum(ev.latitude for ev in members) / n, sum(ev.longitude for ev in members) / n


def estimate_midpoint(events: Iterable[Event], area_id: int, method: str = "gravity") -> tuple[float, float]:
    """Dispatch to one of ``MIDPOINT_METHODS``.

    Raises:
        InvalidArgumentError: If the method is unknown.
        EmptyAreaError: If no event carries ``area_id``.
    """

    if method == "gravity":
        return center_of_gravity(events, area_id)
    if method == "average":
        return average_lat_lon(events, area_id)
    raise InvalidArgumentError(f"未知的中心点算法：{method!r}（可选：{', '.join(MIDPOINT_METHODS)}）")


@dataclass(frozen=True, slots=True)
class DistanceSummary:
    """Distances (meters) from each member event to the area center."""

    count: int
    mean_m: float
    min_m: float
    max_m: float


@dataclass(frozen=True, slots=True)
class CdfBucket:
    """Share of members within ``bound_m`` of the center."""

    bound_m: float
    cumulative_pct: float


@dataclass(frozen=True, slots=True)
class AreaMidpoint:
    """Center of one area for one method, plus its distance distribution."""

    area_id: int
    method: str
    latitude: float
    longitude: float
    summary: DistanceSummary
    cdf: list[CdfBucket]


def _distances(members: Sequence[Event], center: tuple[float, float]) -> list[float]:
    lat, lon = center
    return [haversine_m(lat, lon, ev.latitude, ev.longitude) for ev in members]


def distance_summary(events: Iterable[Event], area_id: int, center: tuple[float, float]) -> DistanceSummary:
    """Mean/min/max great-circle distance from the area's events to ``center``."""

    dists = _distances(_members(events, area_id), center)
    return DistanceSummary(
        count=len(dists),
        mean_m=sum(dists) / len(dists),
        min_m=min(dists),
        max_m=max(dists),
    )


def distance_cdf(
    events: Iterable[Event],
    area_id: int,
    center: tuple[float, float],
    samples: int = DEFAULT_CDF_SAMPLES,
    max_bound_m: float | None = None,
) -> list[CdfBucket]:
    """Cumulative distribution of member distances to ``center``.

    Bounds are ``max_bound_m * j / samples`` for ``j = 1..samples``; by default
    ``max_bound_m`` is the largest observed distance. Pass the same bound for
    several methods to plot them on one axis.
    """

    if samples <= 0:
        raise InvalidArgumentError(f"CDF 采样数必须为正数：{samples}")
    if max_bound_m is not None and max_bound_m < 0:
        raise InvalidArgumentError(f"CDF 上界不能为负：{max_bound_m}")

    dists = sorted(_distances(_members(events, area_id), center))
    upper = dists[-1] if max_bound_m is None else max_bound_m
    n = len(dists)
    out: list[CdfBucket] = []
    k = 0
    for j in range(1, samples + 1):
        # top bound is exactly ``upper``
        bound = upper if j == samples else upper * j / samples
        while k < n and dists[k] <= bound:
            k += 1
        out.append(CdfBucket(bound_m=bound, cumulative_pct=100.0 * k / n))
    return out


def summarize_area(
    events: Sequence[Event],
    area_id: int,
    method: str,
    center: tuple[float, float] | None = None,
    samples: int = DEFAULT_CDF_SAMPLES,
    max_bound_m: float | None = None,
) -> AreaMidpoint:
    """Center plus distance statistics for one area.

    If ``center`` is given (e.g. a center of minimum distance computed
    elsewhere) it is used as-is and ``method`` is only a label.
    """

    if center is None:
        center = estimate_midpoint(events, area_id, method)
    summary = distance_summary(events, area_id, center)
    cdf = distance_cdf(events, area_id, center, samples=samples, max_bound_m=max_bound_m)
    logger.info(
        "区域 %s [%s] 中心=(%.7f, %.7f) 平均距离=%.1fm 最大=%.1fm 最小=%.1fm",
        area_id,
        method,
        center[0],
        center[1],
        summary.mean_m,
        summary.max_m,
        summary.min_m,
    )
    return AreaMidpoint(
        area_id=area_id,
        method=method,
        latitude=center[0],
        longitude=center[1],
        summary=summary,
        cdf=cdf,
    )


def midpoint_analysis(
    events: Sequence[Event],
    area_ids: Iterable[int],
    method: str,
    samples: int = DEFAULT_CDF_SAMPLES,
    max_bound_m: Mapping[int, float] | None = None,
) -> list[AreaMidpoint]:
    """Run ``summarize_area`` for each area id with one estimator."""

    bounds = max_bound_m or {}
    return [
        summarize_area(events, area_id, method, samples=samples, max_bound_m=bounds.get(area_id))
        for area_id in area_ids
    ]


def area_coordinates(events: Iterable[Event], area_id: int) -> tuple[list[float], list[float]]:
    """Longitudes and latitudes of an area's events, for external midpoint calculators."""

    members = _members(events, area_id)
    return [ev.longitude for ev in members], [ev.latitude for ev in members]

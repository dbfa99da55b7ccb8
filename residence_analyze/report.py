"""Output files for plotting and map overlays.

File names follow the plotting scripts' conventions:

- ``time-vs-area.csv`` / ``time-vs-speed.csv``
- ``{method}-area-{id}.csv``: CDF of distances to the area center
- ``area-{id}-lon.txt`` / ``area-{id}-lat.txt``: input for an external
  center-of-minimum-distance calculator
- ``map-by-area-{id}.json`` / ``map-by-speed-{n}-{HHMMSS}-to-{HHMMSS}.json``:
  GeoJSON MultiPoint overlays
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, Sequence

from residence_analyze.areas import time_vs_area
from residence_analyze.midpoint import CdfBucket, area_coordinates
from residence_analyze.models import Event
from residence_analyze.speed import SpeedSample, SpeedStay
from residence_analyze.timeutils import compact_hms

TIME_VS_AREA_CSV = "time-vs-area.csv"
TIME_VS_SPEED_CSV = "time-vs-speed.csv"


def cdf_filename(method: str, area_id: int) -> str:
    return f"{method}-area-{area_id}.csv"


def area_map_filename(area_id: int) -> str:
    return f"map-by-area-{area_id}.json"


def speed_map_filename(index: int, stay: SpeedStay) -> str:
    return f"map-by-speed-{index}-{compact_hms(stay.start)}-to-{compact_hms(stay.end)}.json"


def write_time_vs_area_csv(events: Sequence[Event], out_path: str | Path) -> None:
    """Write (time, area_id) per event."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["time", "area_id"])
        for t, area_id in time_vs_area(events):
            w.writerow([t.isoformat(sep=" "), area_id])


def write_time_vs_speed_csv(samples: Iterable[SpeedSample], out_path: str | Path) -> None:
    """Write (time, speed_kmh) per step."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["time", "speed_kmh"])
        for s in samples:
            w.writerow([s.timestamp.isoformat(sep=" "), f"{s.speed_kmh:.6f}"])


def write_cdf_csv(cdf: Iterable[CdfBucket], out_path: str | Path) -> None:
    """Write the distance CDF as (bound_m, cumulative_pct) rows."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["bound_m", "cumulative_pct"])
        for b in cdf:
            w.writerow([f"{b.bound_m:.3f}", f"{b.cumulative_pct:.3f}"])


def write_multipoint_geojson(events: Sequence[Event], low: int, high: int, out_path: str | Path) -> None:
    """Write events ``low..high`` (inclusive) as a GeoJSON MultiPoint."""

    payload = {
        "type": "MultiPoint",
        "coordinates": [[ev.longitude, ev.latitude] for ev in events[low : high + 1]],
    }
    Path(out_path).write_text(json.dumps(payload, indent=4), encoding="utf-8")


def write_area_geojson(events: Iterable[Event], area_id: int, out_path: str | Path) -> None:
    """Write every event assigned to ``area_id`` as a GeoJSON MultiPoint."""

    members = [ev for ev in events if ev.area_id == area_id]
    write_multipoint_geojson(members, 0, len(members) - 1, out_path)


def write_speed_stays_geojson(
    events: Sequence[Event],
    stays: Iterable[SpeedStay],
    out_dir: str | Path,
) -> list[Path]:
    """Write one MultiPoint file per speed stay; returns the written paths."""

    d = Path(out_dir)
    written: list[Path] = []
    for n, stay in enumerate(stays, start=1):
        path = d / speed_map_filename(n, stay)
        write_multipoint_geojson(events, stay.low, stay.high, path)
        written.append(path)
    return written


def write_mindist_inputs(events: Iterable[Event], area_id: int, out_dir: str | Path) -> tuple[Path, Path]:
    """Write one-value-per-line longitude and latitude files for an area."""

    lons, lats = area_coordinates(events, area_id)
    d = Path(out_dir)
    lon_path = d / f"area-{area_id}-lon.txt"
    lat_path = d / f"area-{area_id}-lat.txt"
    lon_path.write_text("".join(f"{v}\n" for v in lons), encoding="utf-8")
    lat_path.write_text("".join(f"{v}\n" for v in lats), encoding="utf-8")
    return lon_path, lat_path

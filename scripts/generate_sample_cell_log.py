from __future__ import annotations

import argparse
import csv
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Place:
    name: str
    lat: float
    lon: float
    cells: tuple[str, ...]


def generate_rows(
    *,
    days: int,
    seed: int,
    start: datetime,
    home: Place,
    work: Place,
    commute_cells: tuple[str, ...],
) -> list[list[str]]:
    """Generate fake connection-log rows: nights at home, office hours at work."""

    rng = random.Random(seed)
    out: list[list[str]] = []

    def emit(t: datetime, place: Place, jitter: float = 0.002) -> None:
        lat = place.lat + rng.uniform(-jitter, jitter)
        lon = place.lon + rng.uniform(-jitter, jitter)
        out.append([t.strftime("%Y-%m-%d %H:%M:%S"), f"{lon:.6f}", f"{lat:.6f}", rng.choice(place.cells)])

    for d in range(days):
        day = start + timedelta(days=d)
        # home: 00:00 - 08:00, work: 09:30 - 18:00, home again: 19:30 - 24:00
        blocks = [
            (home, day, day + timedelta(hours=8)),
            (work, day + timedelta(hours=9, minutes=30), day + timedelta(hours=18)),
            (home, day + timedelta(hours=19, minutes=30), day + timedelta(hours=24)),
        ]
        for place, lo, hi in blocks:
            t = lo
            while t < hi:
                emit(t, place)
                # Mostly every 1-5 minutes, occasionally a silent stretch
                step = rng.uniform(600, 1800) if rng.random() < 0.05 else rng.uniform(60, 300)
                t += timedelta(seconds=step)

        # a few connections while commuting
        for k, cell in enumerate(commute_cells):
            t = day + timedelta(hours=8, minutes=10 + 15 * k)
            frac = (k + 1) / (len(commute_cells) + 1)
            lat = home.lat + (work.lat - home.lat) * frac
            lon = home.lon + (work.lon - home.lon) * frac
            out.append([t.strftime("%Y-%m-%d %H:%M:%S"), f"{lon:.6f}", f"{lat:.6f}", cell])

    # Shuffle a little: the analysis must not rely on file order
    rng.shuffle(out)
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake tab-separated connection log for demo/testing.")
    p.add_argument("--out", type=str, default="sample_data/data.csv", help="Output path")
    p.add_argument("--days", type=int, default=7, help="Number of days")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2020-03-02 00:00:00", help="Start local time")
    args = p.parse_args()

    home = Place("home", 25.045682, 121.512526, ("CELL_133", "CELL_134", "CELL_201"))
    work = Place("office", 25.050978, 121.299258, ("CELL_502", "CELL_503"))
    rows = generate_rows(
        days=args.days,
        seed=args.seed,
        start=datetime.fromisoformat(args.start),
        home=home,
        work=work,
        commute_cells=("CELL_301", "CELL_302", "CELL_303"),
    )

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f, delimiter="\t")
        w.writerow(["time", "longitude", "latitude", "tag"])
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

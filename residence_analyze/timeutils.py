"""Time parsing and formatting utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable

from zoneinfo import ZoneInfo

from residence_analyze.models import EVENT_TIME_FORMAT


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Asia/Taipei".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"无效时区：{tz_name!r}。例如可用：Asia/Taipei") from exc


def parse_event_time(text: str, tz_name: str) -> datetime:
    """Parse an event timestamp in the fixed log format ``YYYY-MM-DD HH:MM:SS``.

    Raises:
        ValueError: If the text does not match the log format.
    """

    dt = datetime.strptime(text.strip(), EVENT_TIME_FORMAT)
    return dt.replace(tzinfo=tzinfo_from_name(tz_name))


def compact_hms(dt: datetime) -> str:
    """Format the wall-clock time as ``HHMMSS`` (used in file names)."""

    return dt.strftime("%H%M%S")


@dataclass(frozen=True, slots=True)
class DeltaStats:
    """Sampling interval stats (seconds)."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def delta_stats(epoch_s_sorted: Iterable[float]) -> DeltaStats | None:
    """Compute basic sampling-interval statistics.

    Args:
        epoch_s_sorted: Epoch seconds sorted ascending.

    Returns:
        DeltaStats or None if less than 2 points.
    """

    ts = list(epoch_s_sorted)
    if len(ts) < 2:
        return None
    deltas = [ts[i] - ts[i - 1] for i in range(1, len(ts)) if ts[i] >= ts[i - 1]]
    if not deltas:
        return None
    deltas.sort()
    n = len(deltas)
    median = deltas[n // 2] if n % 2 == 1 else 0.5 * (deltas[n // 2 - 1] + deltas[n // 2])
    p95 = deltas[int(0.95 * (n - 1))]
    return DeltaStats(
        count=n,
        min_s=deltas[0],
        median_s=median,
        p95_s=p95,
        max_s=deltas[-1],
    )

"""CSV input utilities for the connection log export."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from residence_analyze.models import DEFAULT_TZ, Event
from residence_analyze.timeutils import parse_event_time, tzinfo_from_name

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "\t"


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    header: Sequence[str]


def _parse_row(row: Sequence[str], tz_name: str) -> Event:
    # columns: time, longitude, latitude, tag
    if len(row) < 4:
        raise ValueError(f"字段不足：{row!r}")
    return Event(
        timestamp=parse_event_time(row[0], tz_name),
        longitude=float(row[1].strip()),
        latitude=float(row[2].strip()),
        tag=row[3].strip(),
    )


def read_header(csv_path: str | Path, delimiter: str = DEFAULT_DELIMITER) -> Sequence[str]:
    """First line of the log, split into fields (empty if the file is empty)."""

    with Path(csv_path).open("r", encoding="utf-8", newline="") as f:
        return next(csv.reader(f, delimiter=delimiter), None) or ()


def iter_events(
    csv_path: str | Path,
    tz_name: str = DEFAULT_TZ,
    delimiter: str = DEFAULT_DELIMITER,
    skipped: list[Sequence[str]] | None = None,
) -> Iterator[Event]:
    """Yield Event objects from the connection log.

    The first line is a header and is skipped. Rows are read positionally:
    ``time`` (``YYYY-MM-DD HH:MM:SS``), ``longitude``, ``latitude``, ``tag``.
    Rows that fail to parse are skipped; pass ``skipped`` to collect them.
    """

    tzinfo_from_name(tz_name)
    p = Path(csv_path)
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f, delimiter=delimiter)
        if next(reader, None) is None:
            return
        for row in reader:
            try:
                yield _parse_row(row, tz_name)
            except (ValueError, TypeError):
                # 某些行可能损坏/空行，直接跳过
                if skipped is not None:
                    skipped.append(row)


def load_events(
    csv_path: str | Path,
    tz_name: str = DEFAULT_TZ,
    delimiter: str = DEFAULT_DELIMITER,
) -> tuple[list[Event], CsvSummary]:
    """Load all events into memory.

    Args:
        csv_path: Path to the connection log.
        tz_name: IANA timezone the log's wall-clock times are in.
        delimiter: Field separator (tab by default).

    Returns:
        (events, summary)
    """

    tzinfo_from_name(tz_name)
    skipped: list[Sequence[str]] = []
    parsed = list(iter_events(csv_path, tz_name, delimiter, skipped=skipped))

    summary = CsvSummary(
        rows_total=len(parsed) + len(skipped),
        rows_parsed=len(parsed),
        rows_skipped=len(skipped),
        header=read_header(csv_path, delimiter),
    )
    if summary.rows_skipped > 0:
        logger.warning("CSV中有 %s 行解析失败已跳过", summary.rows_skipped)
    return parsed, summary

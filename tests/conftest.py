from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Callable

import pytest

from residence_analyze.models import Event

BASE = datetime(2020, 3, 2, tzinfo=UTC)

EventFactory = Callable[..., Event]


def at(seconds: float) -> datetime:
    return BASE + timedelta(seconds=seconds)


@pytest.fixture
def make_event() -> EventFactory:
    def _make(seconds: float, tag: str = "A", lat: float = 25.0, lon: float = 121.5, area_id: int = 0) -> Event:
        return Event(timestamp=at(seconds), longitude=lon, latitude=lat, tag=tag, area_id=area_id)

    return _make


@pytest.fixture
def base_time() -> datetime:
    return BASE

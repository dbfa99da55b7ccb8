"""All events of one user, sorted once and grouped by location tag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from residence_analyze.errors import InvalidInputError, UnknownTagError
from residence_analyze.models import Event, LocationGroup, TimeInterval


@dataclass(slots=True)
class Timeline:
    """Sorted event arena plus per-tag groups.

    Attributes:
        events: All events in chronological order (stable for equal times).
        groups: Tag -> group, in order of first appearance in the input.
    """

    events: list[Event]
    groups: dict[str, LocationGroup]

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> Timeline:
        """Group and sort parsed events.

        Raises:
            InvalidInputError: If no events are given.
        """

        groups: dict[str, LocationGroup] = {}
        rows: list[Event] = []
        for ev in events:
            rows.append(ev)
            group = groups.get(ev.tag)
            if group is None:
                group = groups[ev.tag] = LocationGroup(tag=ev.tag)
            group.add(ev)

        if not rows:
            raise InvalidInputError("没有可分析的事件（输入为空或全部解析失败）")

        for group in groups.values():
            group.sort_events()
        rows.sort(key=lambda e: e.epoch_s)
        return cls(events=rows, groups=groups)

    def group(self, tag: str) -> LocationGroup:
        try:
            return self.groups[tag]
        except KeyError:
            raise UnknownTagError(f"不存在该位置标签：{tag!r}") from None

    def num_connections(self, tag: str) -> int:
        return self.group(tag).num_connections()

    def time_segments(self, tag: str, tolerance_s: float) -> list[TimeInterval]:
        return self.group(tag).time_segments(tolerance_s)

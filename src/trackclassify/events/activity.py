from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List

from trackclassify.classification.activity import activity_severity
from trackclassify.events.base import Rule, log_skipped_track
from trackclassify.utils.types import Activity, Event, Track


logger = logging.getLogger("trackclassify.events.activity")

_QUIET: FrozenSet[str] = frozenset(("Standing", "New"))


@dataclass
class ActivityChangeRule(Rule):
    """Emits ``ActivityChange`` when a track enters a non-Standing state.

    The rule remembers the last activity it saw per track, so a state that
    persists over many frames produces one event.
    """

    classes: FrozenSet[str] = frozenset(("person",))
    name: str = "activity"
    _last: Dict[int, Activity] = field(default_factory=dict)

    def evaluate(self, tracks: List[Track], timestamp_s: float, scale: float = 1.0) -> List[Event]:
        events: List[Event] = []
        for t in tracks:
            try:
                if self.classes and t.class_name not in self.classes:
                    continue
                current = t.activity
                previous = self._last.get(t.track_id)
                self._last[t.track_id] = current
                if current in _QUIET or current == previous:
                    continue
                events.append(
                    Event(
                        kind="ActivityChange",
                        timestamp_s=float(timestamp_s),
                        track_ids=(int(t.track_id),),
                        severity=activity_severity(current),
                        details={
                            "activity": current,
                            "previous_activity": previous or "New",
                            "class": t.class_name,
                            "avg_speed": t.snapshot().avg_speed,
                        },
                    )
                )
            except Exception as e:
                log_skipped_track(logger, self.name, t, e)
        return events

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        alive = set(int(x) for x in alive_track_ids)
        for tid in [k for k in self._last if k not in alive]:
            del self._last[tid]

    def reset(self) -> None:
        self._last.clear()

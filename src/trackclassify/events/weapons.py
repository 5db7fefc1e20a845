from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List

from trackclassify.events.base import Rule, log_skipped_track
from trackclassify.utils.types import Event, Track


logger = logging.getLogger("trackclassify.events.weapons")


@dataclass
class WeaponRule(Rule):
    classes: FrozenSet[str] = frozenset(("knife", "gun"))
    suppression_s: float = 5.0
    name: str = "weapons"
    _last_emit_s: Dict[int, float] = field(default_factory=dict)

    def evaluate(self, tracks: List[Track], timestamp_s: float, scale: float = 1.0) -> List[Event]:
        events: List[Event] = []
        for t in tracks:
            if t.class_name not in self.classes or not t.matched_this_frame:
                continue
            try:
                last = self._last_emit_s.get(t.track_id)
                if last is not None and (float(timestamp_s) - last) < self.suppression_s:
                    continue
                self._last_emit_s[t.track_id] = float(timestamp_s)
                events.append(
                    Event(
                        kind="WeaponDetected",
                        timestamp_s=float(timestamp_s),
                        track_ids=(int(t.track_id),),
                        severity="high",
                        details={"class": t.class_name, "score": float(t.score), "repeat": last is not None},
                    )
                )
            except Exception as e:
                log_skipped_track(logger, self.name, t, e)
        return events

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        alive = set(int(x) for x in alive_track_ids)
        for tid in [k for k in self._last_emit_s if k not in alive]:
            del self._last_emit_s[tid]

    def reset(self) -> None:
        self._last_emit_s.clear()

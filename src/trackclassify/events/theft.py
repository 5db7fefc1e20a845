from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from trackclassify.events.base import Rule, log_skipped_track
from trackclassify.motion.math import euclidean
from trackclassify.utils.types import Event, Track


logger = logging.getLogger("trackclassify.events.theft")


@dataclass
class TheftRule(Rule):
    """Flags a valuable object that moves while a person is close to it.

    A qualifying object must have been observed this frame with a displacement
    above ``object_displacement`` since its previous observation. After an
    emission the object id is suppressed for ``suppression_s``.
    """

    valuable_classes: FrozenSet[str]
    person_class: str = "person"
    object_displacement: float = 30.0
    proximity_distance: float = 150.0
    suppression_s: float = 5.0
    name: str = "theft"
    _last_emit_s: Dict[int, float] = field(default_factory=dict)

    def evaluate(self, tracks: List[Track], timestamp_s: float, scale: float = 1.0) -> List[Event]:
        persons = [t for t in tracks if t.class_name == self.person_class]
        disp_thr = self.object_displacement * float(scale)
        prox_thr = self.proximity_distance * float(scale)
        events: List[Event] = []
        for obj in tracks:
            if obj.class_name not in self.valuable_classes or not obj.matched_this_frame:
                continue
            try:
                if not obj.velocity_history or obj.last_displacement <= disp_thr:
                    continue
                nearest = self._nearest_person(obj, persons)
                if nearest is None or nearest[1] >= prox_thr:
                    continue
                last = self._last_emit_s.get(obj.track_id)
                if last is not None and (float(timestamp_s) - last) < self.suppression_s:
                    continue
                person, dist = nearest
                self._last_emit_s[obj.track_id] = float(timestamp_s)
                events.append(
                    Event(
                        kind="TheftSuspected",
                        timestamp_s=float(timestamp_s),
                        track_ids=(int(obj.track_id), int(person.track_id)),
                        severity="high",
                        details={
                            "object_class": obj.class_name,
                            "displacement": float(obj.last_displacement),
                            "person_distance": float(dist),
                        },
                    )
                )
            except Exception as e:
                log_skipped_track(logger, self.name, obj, e)
        return events

    def _nearest_person(self, obj: Track, persons: List[Track]) -> Optional[Tuple[Track, float]]:
        best: Optional[Tuple[Track, float]] = None
        for p in persons:
            d = euclidean(obj.center_xy, p.center_xy)
            if best is None or d < best[1]:
                best = (p, d)
        return best

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        alive = set(int(x) for x in alive_track_ids)
        for tid in [k for k in self._last_emit_s if k not in alive]:
            del self._last_emit_s[tid]

    def reset(self) -> None:
        self._last_emit_s.clear()

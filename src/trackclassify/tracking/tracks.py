from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from trackclassify.motion.math import euclidean
from trackclassify.tracking.base import Associator, Match
from trackclassify.tracking.greedy import GreedyCentroidAssociator
from trackclassify.utils.types import Detection, Track


logger = logging.getLogger("trackclassify.tracking.tracks")


@dataclass(frozen=True)
class RegistryUpdate:
    matched: List[Track] = field(default_factory=list)
    created: List[Track] = field(default_factory=list)


class TrackRegistry:
    """Owns the live tracks of one engine.

    Expiry (``now - last_seen > timeout``) is the only way a track leaves the
    registry; tracks are never merged or split and ids are never reused.
    """

    def __init__(
        self,
        gate_distance: float,
        timeout_s: float,
        size_gate_factor: float = 1.0,
        tracked_classes: Optional[Iterable[str]] = None,
        position_history_size: int = 5,
        velocity_window_size: int = 5,
        associator: Optional[Associator] = None,
    ) -> None:
        self._gate_distance = float(gate_distance)
        self._timeout_s = float(timeout_s)
        self._size_gate_factor = float(size_gate_factor)
        self._tracked: FrozenSet[str] = frozenset(tracked_classes or ())
        self._position_history_size = int(position_history_size)
        self._velocity_window_size = int(velocity_window_size)
        self._associator: Associator = associator or GreedyCentroidAssociator()
        self._tracks: Dict[int, Track] = {}
        self._next_id = 1

    def is_tracked(self, class_name: str) -> bool:
        return not self._tracked or class_name in self._tracked

    def tracks(self) -> List[Track]:
        return [self._tracks[tid] for tid in sorted(self._tracks)]

    def get(self, track_id: int) -> Optional[Track]:
        return self._tracks.get(track_id)

    def __len__(self) -> int:
        return len(self._tracks)

    def gate_for(self, track: Track, scale: float = 1.0) -> float:
        return max(self._gate_distance * float(scale), self._size_gate_factor * track.diagonal())

    def expire(self, now_s: float) -> List[Track]:
        expired = [t for t in self._tracks.values() if (float(now_s) - t.last_seen_s) > self._timeout_s]
        for t in expired:
            del self._tracks[t.track_id]
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("expired track=%d class=%s unseen_for=%.3fs", t.track_id, t.class_name, now_s - t.last_seen_s)
        return expired

    def update(self, detections: List[Detection], timestamp_s: float, scale: float = 1.0) -> RegistryUpdate:
        for t in self._tracks.values():
            t.matched_this_frame = False

        dets_by_class: Dict[str, List[Detection]] = {}
        for d in detections:
            if self.is_tracked(d.class_name):
                dets_by_class.setdefault(d.class_name, []).append(d)

        # plan every class first so a failing associator leaves tracks untouched
        plan: List[Tuple[List[Track], List[Detection], List[Match]]] = []
        for class_name, dets in dets_by_class.items():
            live = [t for t in self.tracks() if t.class_name == class_name]
            if live:
                matches = self._associator.associate(
                    [t.center_xy for t in live],
                    [d.centroid_xy for d in dets],
                    [self.gate_for(t, scale) for t in live],
                )
            else:
                matches = []
            plan.append((live, dets, matches))

        out = RegistryUpdate()
        for live, dets, matches in plan:
            matched_dets: set[int] = set()
            for ti, dj in matches:
                if dj in matched_dets:
                    continue
                self._apply_match(live[ti], dets[dj], timestamp_s)
                matched_dets.add(dj)
                out.matched.append(live[ti])
            for dj, d in enumerate(dets):
                if dj in matched_dets:
                    continue
                out.created.append(self._spawn(d, timestamp_s))
        return out

    def clear(self) -> None:
        self._tracks.clear()

    def _spawn(self, det: Detection, t_s: float) -> Track:
        tid = self._next_id
        self._next_id += 1
        track = Track.start(tid, det, t_s, self._position_history_size, self._velocity_window_size)
        self._tracks[tid] = track
        return track

    def _apply_match(self, track: Track, det: Detection, t_s: float) -> None:
        center = det.centroid_xy
        track.velocity_history.append(euclidean(track.center_xy, center))
        track.position_history.append(center)
        track.center_xy = center
        track.box_xywh = det.box_xywh
        track.score = det.score
        track.last_seen_s = float(t_s)
        track.hits += 1
        track.matched_this_frame = True

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Literal, Mapping, Optional, Tuple

BBoxXYWH = Tuple[float, float, float, float]
PointXY = Tuple[float, float]

Activity = Literal["New", "Standing", "Walking", "Running", "Jumping", "QuickExit"]
EventKind = Literal["ActivityChange", "TheftSuspected", "DensityLevelChanged", "WeaponDetected"]
Severity = Literal["low", "medium", "high"]
DensityLevel = Literal["Low", "Medium", "High"]

ACTIVITIES: Tuple[str, ...] = ("New", "Standing", "Walking", "Running", "Jumping", "QuickExit")


@dataclass(frozen=True)
class Detection:
    class_name: str
    score: float
    box_xywh: BBoxXYWH

    @property
    def centroid_xy(self) -> PointXY:
        x, y, w, h = self.box_xywh
        return (x + 0.5 * w, y + 0.5 * h)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Detection":
        class_name = d.get("class_name", d.get("class"))
        if class_name is None:
            raise KeyError("detection needs 'class' or 'class_name'")
        box = d.get("box", d.get("bbox"))
        if isinstance(box, Mapping):
            xywh = (float(box["x"]), float(box["y"]), float(box["w"]), float(box["h"]))
        elif box is not None and len(box) == 4:
            xywh = (float(box[0]), float(box[1]), float(box[2]), float(box[3]))
        else:
            raise ValueError(f"detection box must be [x, y, w, h] or a mapping, got: {box!r}")
        return Detection(class_name=str(class_name), score=float(d.get("score", 0.0)), box_xywh=xywh)


@dataclass(frozen=True)
class FrameDetections:
    frame_index: int
    timestamp_s: float
    frame_width: int
    frame_height: int
    detections: List[Detection]


@dataclass(frozen=True)
class TrackSnapshot:
    track_id: int
    class_name: str
    box_xywh: BBoxXYWH
    center_xy: PointXY
    score: float
    activity: Activity
    created_at_s: float
    last_seen_s: float
    hits: int
    avg_speed: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "track_id": self.track_id,
            "class": self.class_name,
            "box": {"x": self.box_xywh[0], "y": self.box_xywh[1], "w": self.box_xywh[2], "h": self.box_xywh[3]},
            "center": [self.center_xy[0], self.center_xy[1]],
            "score": self.score,
            "activity": self.activity,
            "created_at_s": self.created_at_s,
            "last_seen_s": self.last_seen_s,
            "hits": self.hits,
            "avg_speed": self.avg_speed,
        }


@dataclass
class Track:
    track_id: int
    class_name: str
    box_xywh: BBoxXYWH
    center_xy: PointXY
    score: float
    created_at_s: float
    last_seen_s: float
    position_history: Deque[PointXY]
    velocity_history: Deque[float]
    activity: Activity = "New"
    hits: int = 1
    matched_this_frame: bool = True

    @staticmethod
    def start(track_id: int, det: Detection, t_s: float, position_history_size: int, velocity_window_size: int) -> "Track":
        center = det.centroid_xy
        positions: Deque[PointXY] = deque(maxlen=max(2, int(position_history_size)))
        positions.append(center)
        return Track(
            track_id=track_id,
            class_name=det.class_name,
            box_xywh=det.box_xywh,
            center_xy=center,
            score=det.score,
            created_at_s=float(t_s),
            last_seen_s=float(t_s),
            position_history=positions,
            velocity_history=deque(maxlen=max(1, int(velocity_window_size))),
        )

    @property
    def previous_center_xy(self) -> Optional[PointXY]:
        if len(self.position_history) < 2:
            return None
        return self.position_history[-2]

    @property
    def last_displacement(self) -> float:
        if not self.velocity_history:
            return 0.0
        return float(self.velocity_history[-1])

    def diagonal(self) -> float:
        _, _, w, h = self.box_xywh
        return math.hypot(w, h)

    def snapshot(self) -> TrackSnapshot:
        n = len(self.velocity_history)
        avg = float(sum(self.velocity_history) / n) if n else 0.0
        return TrackSnapshot(
            track_id=self.track_id,
            class_name=self.class_name,
            box_xywh=self.box_xywh,
            center_xy=self.center_xy,
            score=self.score,
            activity=self.activity,
            created_at_s=self.created_at_s,
            last_seen_s=self.last_seen_s,
            hits=self.hits,
            avg_speed=avg,
        )


@dataclass(frozen=True)
class Event:
    kind: EventKind
    timestamp_s: float
    track_ids: Tuple[int, ...]
    severity: Severity
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "timestamp_s": self.timestamp_s,
            "track_ids": list(self.track_ids),
            "severity": self.severity,
            "details": dict(self.details),
        }

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet

from trackclassify.errors import ConfigurationError
from trackclassify.utils.config import str_list

DEFAULT_VALUABLE_CLASSES = ("cell phone", "laptop", "backpack", "handbag", "suitcase", "wallet")
DEFAULT_WEAPON_CLASSES = ("knife", "gun")
ASSOCIATION_BACKENDS = ("greedy_centroid", "hungarian")


@dataclass(frozen=True)
class EngineConfig:
    min_detection_score: float = 0.6
    clip_boxes: bool = False

    association_backend: str = "greedy_centroid"
    association_gate_distance: float = 100.0
    size_gate_factor: float = 1.0
    track_timeout_ms: float = 1000.0
    tracked_classes: FrozenSet[str] = field(
        default_factory=lambda: frozenset(("person",) + DEFAULT_VALUABLE_CLASSES + DEFAULT_WEAPON_CLASSES)
    )

    normalize_resolution: bool = True
    reference_width: int = 640
    reference_height: int = 480

    velocity_window_size: int = 5
    position_history_size: int = 5

    jump_delta: float = 40.0
    run_speed: float = 80.0
    walk_speed: float = 40.0
    exit_delta_x: float = 70.0
    exit_delta_y: float = 20.0
    activity_classes: FrozenSet[str] = frozenset(("person",))

    theft_enabled: bool = True
    person_class: str = "person"
    valuable_classes: FrozenSet[str] = frozenset(DEFAULT_VALUABLE_CLASSES)
    object_displacement: float = 30.0
    proximity_distance: float = 150.0
    theft_suppression_ms: float = 5000.0

    density_enabled: bool = True
    low_density_count: int = 10
    high_density_count: int = 30
    density_hysteresis_frames: int = 1

    weapons_enabled: bool = True
    weapon_classes: FrozenSet[str] = frozenset(DEFAULT_WEAPON_CLASSES)
    weapon_suppression_ms: float = 5000.0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EngineConfig":
        ingest = d.get("ingest", {}) or {}
        assoc = d.get("association", {}) or {}
        res = d.get("resolution", {}) or {}
        motion = d.get("motion", {}) or {}
        act = d.get("activity", {}) or {}
        theft = d.get("theft", {}) or {}
        density = d.get("density", {}) or {}
        weapons = d.get("weapons", {}) or {}
        base = EngineConfig()

        try:
            person_class = str(theft.get("person_class", density.get("person_class", base.person_class)))
            valuable = frozenset(str_list(theft.get("valuable_classes", list(base.valuable_classes)), "theft.valuable_classes"))
            weapon_classes = frozenset(str_list(weapons.get("classes", list(base.weapon_classes)), "weapons.classes"))
            if "tracked_classes" in assoc:
                tracked = frozenset(str_list(assoc.get("tracked_classes"), "association.tracked_classes"))
            else:
                tracked = frozenset({person_class}) | valuable | weapon_classes

            return EngineConfig(
                min_detection_score=float(ingest.get("min_detection_score", base.min_detection_score)),
                clip_boxes=bool(ingest.get("clip_boxes", base.clip_boxes)),
                association_backend=str(assoc.get("backend", base.association_backend)).lower(),
                association_gate_distance=float(assoc.get("gate_distance", base.association_gate_distance)),
                size_gate_factor=float(assoc.get("size_gate_factor", base.size_gate_factor)),
                track_timeout_ms=float(assoc.get("track_timeout_ms", base.track_timeout_ms)),
                tracked_classes=tracked,
                normalize_resolution=bool(res.get("normalize", base.normalize_resolution)),
                reference_width=int(res.get("reference_width", base.reference_width)),
                reference_height=int(res.get("reference_height", base.reference_height)),
                velocity_window_size=int(motion.get("velocity_window_size", base.velocity_window_size)),
                position_history_size=int(motion.get("position_history_size", base.position_history_size)),
                jump_delta=float(act.get("jump_delta", base.jump_delta)),
                run_speed=float(act.get("run_speed", base.run_speed)),
                walk_speed=float(act.get("walk_speed", base.walk_speed)),
                exit_delta_x=float(act.get("exit_delta_x", base.exit_delta_x)),
                exit_delta_y=float(act.get("exit_delta_y", base.exit_delta_y)),
                activity_classes=frozenset(str_list(act.get("classes", [person_class]), "activity.classes")),
                theft_enabled=bool(theft.get("enabled", base.theft_enabled)),
                person_class=person_class,
                valuable_classes=valuable,
                object_displacement=float(theft.get("object_displacement", base.object_displacement)),
                proximity_distance=float(theft.get("proximity_distance", base.proximity_distance)),
                theft_suppression_ms=float(theft.get("suppression_ms", base.theft_suppression_ms)),
                density_enabled=bool(density.get("enabled", base.density_enabled)),
                low_density_count=int(density.get("low_density_count", base.low_density_count)),
                high_density_count=int(density.get("high_density_count", base.high_density_count)),
                density_hysteresis_frames=int(density.get("hysteresis_frames", base.density_hysteresis_frames)),
                weapons_enabled=bool(weapons.get("enabled", base.weapons_enabled)),
                weapon_classes=weapon_classes,
                weapon_suppression_ms=float(weapons.get("suppression_ms", base.weapon_suppression_ms)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid engine configuration: {e}") from e

    def with_overrides(self, **kwargs: Any) -> "EngineConfig":
        return replace(self, **kwargs)

    @property
    def track_timeout_s(self) -> float:
        return float(self.track_timeout_ms) / 1000.0

    @property
    def theft_suppression_s(self) -> float:
        return float(self.theft_suppression_ms) / 1000.0

    @property
    def weapon_suppression_s(self) -> float:
        return float(self.weapon_suppression_ms) / 1000.0

    def validate(self) -> None:
        if not (0.0 <= self.min_detection_score <= 1.0):
            raise ConfigurationError(f"min_detection_score must be in [0, 1], got {self.min_detection_score}")
        if self.association_backend not in ASSOCIATION_BACKENDS:
            raise ConfigurationError(f"Unknown association backend: {self.association_backend}")

        distances = {
            "association_gate_distance": self.association_gate_distance,
            "size_gate_factor": self.size_gate_factor,
            "jump_delta": self.jump_delta,
            "run_speed": self.run_speed,
            "walk_speed": self.walk_speed,
            "exit_delta_x": self.exit_delta_x,
            "exit_delta_y": self.exit_delta_y,
            "object_displacement": self.object_displacement,
            "proximity_distance": self.proximity_distance,
            "theft_suppression_ms": self.theft_suppression_ms,
            "weapon_suppression_ms": self.weapon_suppression_ms,
        }
        for name, value in distances.items():
            if not math.isfinite(value) or value < 0.0:
                raise ConfigurationError(f"{name} must be a finite non-negative number, got {value}")

        if not math.isfinite(self.track_timeout_ms) or self.track_timeout_ms <= 0.0:
            raise ConfigurationError(f"track_timeout_ms must be positive, got {self.track_timeout_ms}")
        if self.velocity_window_size < 1:
            raise ConfigurationError("velocity_window_size must be >= 1")
        if self.position_history_size < 2:
            raise ConfigurationError("position_history_size must be >= 2")
        if self.walk_speed > self.run_speed:
            raise ConfigurationError(f"walk_speed ({self.walk_speed}) must not exceed run_speed ({self.run_speed})")
        if self.low_density_count < 0 or self.high_density_count < 0:
            raise ConfigurationError("density counts must be non-negative")
        if self.low_density_count > self.high_density_count:
            raise ConfigurationError(
                f"low_density_count ({self.low_density_count}) must not exceed high_density_count ({self.high_density_count})"
            )
        if self.density_hysteresis_frames < 1:
            raise ConfigurationError("density hysteresis_frames must be >= 1")
        if self.reference_width <= 0 or self.reference_height <= 0:
            raise ConfigurationError("reference resolution must be positive")

    def scale_for(self, frame_width: int, frame_height: int) -> float:
        """Factor applied to every pixel threshold for a frame of the given size.

        Thresholds are expressed at the reference resolution and scale with the
        frame diagonal, so a 1280x960 stream doubles every distance.
        """
        if not self.normalize_resolution or frame_width <= 0 or frame_height <= 0:
            return 1.0
        return math.hypot(frame_width, frame_height) / math.hypot(self.reference_width, self.reference_height)

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from trackclassify.utils.types import DensityLevel, Event, Severity, Track

_SEVERITY = {"Low": "low", "Medium": "medium", "High": "high"}


@dataclass
class DensityRule:
    """Crowd level from the live person count.

    ``count < low`` is Low, ``count < high`` is Medium, anything else High. A
    change is reported only after the new level held for ``hysteresis_frames``
    consecutive evaluations, and only once per transition.
    """

    low_density_count: int = 10
    high_density_count: int = 30
    hysteresis_frames: int = 1
    person_class: str = "person"
    name: str = "density"
    level: DensityLevel = "Low"
    last_count: int = 0
    _pending: Optional[DensityLevel] = None
    _streak: int = 0

    def level_for(self, count: int) -> DensityLevel:
        if count < self.low_density_count:
            return "Low"
        if count < self.high_density_count:
            return "Medium"
        return "High"

    def update_count(self, count: int, timestamp_s: float) -> Optional[Event]:
        self.last_count = int(count)
        candidate = self.level_for(int(count))
        if candidate == self.level:
            self._pending = None
            self._streak = 0
            return None
        if candidate != self._pending:
            self._pending = candidate
            self._streak = 0
        self._streak += 1
        if self._streak < max(1, int(self.hysteresis_frames)):
            return None

        previous = self.level
        self.level = candidate
        self._pending = None
        self._streak = 0
        severity: Severity = _SEVERITY[candidate]  # type: ignore[assignment]
        return Event(
            kind="DensityLevelChanged",
            timestamp_s=float(timestamp_s),
            track_ids=(),
            severity=severity,
            details={"previous_level": previous, "level": candidate, "count": int(count)},
        )

    def evaluate(self, tracks: List[Track], timestamp_s: float, scale: float = 1.0) -> List[Event]:
        count = sum(1 for t in tracks if t.class_name == self.person_class)
        ev = self.update_count(count, timestamp_s)
        return [ev] if ev is not None else []

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        return None

    def reset(self) -> None:
        self.level = "Low"
        self.last_count = 0
        self._pending = None
        self._streak = 0

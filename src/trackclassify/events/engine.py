from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from trackclassify.config import EngineConfig
from trackclassify.events.activity import ActivityChangeRule
from trackclassify.events.base import Rule
from trackclassify.events.density import DensityRule
from trackclassify.events.theft import TheftRule
from trackclassify.events.weapons import WeaponRule
from trackclassify.utils.types import Event, Track


logger = logging.getLogger("trackclassify.events.engine")


class EventEngine:
    """Runs the composite rules over the current track set, in a fixed order.

    A rule that fails outright is logged and contributes nothing for that
    frame; the remaining rules still run.
    """

    def __init__(self, rules: Sequence[Rule]) -> None:
        self._rules: List[Rule] = list(rules)

    @staticmethod
    def from_config(cfg: EngineConfig) -> "EventEngine":
        rules: List[Rule] = [ActivityChangeRule(classes=frozenset(cfg.activity_classes))]
        if cfg.theft_enabled:
            rules.append(
                TheftRule(
                    valuable_classes=frozenset(cfg.valuable_classes),
                    person_class=cfg.person_class,
                    object_displacement=cfg.object_displacement,
                    proximity_distance=cfg.proximity_distance,
                    suppression_s=cfg.theft_suppression_s,
                )
            )
        if cfg.weapons_enabled:
            rules.append(WeaponRule(classes=frozenset(cfg.weapon_classes), suppression_s=cfg.weapon_suppression_s))
        if cfg.density_enabled:
            rules.append(
                DensityRule(
                    low_density_count=cfg.low_density_count,
                    high_density_count=cfg.high_density_count,
                    hysteresis_frames=cfg.density_hysteresis_frames,
                    person_class=cfg.person_class,
                )
            )
        return EventEngine(rules)

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def rule(self, name: str) -> Optional[Rule]:
        for r in self._rules:
            if r.name == name:
                return r
        return None

    def evaluate(
        self,
        tracks: List[Track],
        timestamp_s: float,
        scale: float = 1.0,
        only: Optional[Iterable[str]] = None,
    ) -> List[Event]:
        names = None if only is None else frozenset(only)
        events: List[Event] = []
        for r in self._rules:
            if names is not None and r.name not in names:
                continue
            try:
                events.extend(r.evaluate(tracks, timestamp_s, scale))
            except Exception:
                logger.exception("rule %s failed at t=%.3f; skipped for this frame", r.name, timestamp_s)
        return events

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        alive = list(alive_track_ids)
        for r in self._rules:
            r.prune(alive)

    def reset(self) -> None:
        for r in self._rules:
            r.reset()

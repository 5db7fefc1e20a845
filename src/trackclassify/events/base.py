from __future__ import annotations

import logging
from typing import Iterable, List, Protocol

from trackclassify.utils.types import Event, Track


class Rule(Protocol):
    name: str

    def evaluate(self, tracks: List[Track], timestamp_s: float, scale: float = 1.0) -> List[Event]:
        ...

    def prune(self, alive_track_ids: Iterable[int]) -> None:
        ...

    def reset(self) -> None:
        ...


def log_skipped_track(logger: logging.Logger, rule: str, track: Track, err: Exception) -> None:
    logger.warning(
        "rule=%s skipped track=%s class=%s: %s",
        rule,
        getattr(track, "track_id", "?"),
        getattr(track, "class_name", "?"),
        err,
    )

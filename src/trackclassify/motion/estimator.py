from __future__ import annotations

from dataclasses import dataclass
from itertools import islice

from trackclassify.motion.math import mean_of
from trackclassify.utils.types import Track


@dataclass(frozen=True)
class MotionEstimate:
    avg_speed: float
    vertical_delta: float
    horizontal_delta: float
    samples: int


def estimate_motion(track: Track, window: int = 5) -> MotionEstimate:
    """Per-track motion from the ring buffers.

    ``avg_speed`` is the mean of the last ``window`` displacement samples in
    pixels per observed frame interval. The deltas are raw (unsmoothed) so a
    single-frame jump is visible immediately.
    """
    n = len(track.velocity_history)
    k = max(1, int(window))
    recent = list(islice(track.velocity_history, max(0, n - k), n))
    prev = track.previous_center_xy
    if prev is None:
        dx = dy = 0.0
    else:
        dx = float(track.center_xy[0] - prev[0])
        dy = float(track.center_xy[1] - prev[1])
    return MotionEstimate(avg_speed=mean_of(recent), vertical_delta=dy, horizontal_delta=dx, samples=len(recent))

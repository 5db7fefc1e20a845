from __future__ import annotations

from dataclasses import dataclass

from trackclassify.motion.estimator import MotionEstimate
from trackclassify.utils.types import Activity, Severity


@dataclass(frozen=True)
class ActivityThresholds:
    jump_delta: float = 40.0
    run_speed: float = 80.0
    walk_speed: float = 40.0
    exit_delta_x: float = 70.0
    exit_delta_y: float = 20.0

    def scaled(self, factor: float) -> "ActivityThresholds":
        f = float(factor)
        if f == 1.0:
            return self
        return ActivityThresholds(
            jump_delta=self.jump_delta * f,
            run_speed=self.run_speed * f,
            walk_speed=self.walk_speed * f,
            exit_delta_x=self.exit_delta_x * f,
            exit_delta_y=self.exit_delta_y * f,
        )


def classify_activity(motion: MotionEstimate, thresholds: ActivityThresholds) -> Activity:
    # a track stays New until it has produced a real velocity sample
    if motion.samples == 0:
        return "New"
    dy = abs(motion.vertical_delta)
    if dy > thresholds.jump_delta:
        return "Jumping"
    if motion.avg_speed >= thresholds.run_speed:
        return "Running"
    if motion.avg_speed > thresholds.walk_speed:
        return "Walking"
    if abs(motion.horizontal_delta) > thresholds.exit_delta_x and dy < thresholds.exit_delta_y:
        return "QuickExit"
    return "Standing"


def activity_severity(activity: Activity) -> Severity:
    if activity == "Walking":
        return "low"
    return "high"

from .estimator import MotionEstimate, estimate_motion
from .math import euclidean, mean_of

__all__ = ["MotionEstimate", "estimate_motion", "euclidean", "mean_of"]

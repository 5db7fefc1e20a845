from __future__ import annotations

import math
from typing import Iterable, Tuple


def euclidean(p: Tuple[float, float], q: Tuple[float, float]) -> float:
    return float(math.hypot(float(q[0]) - float(p[0]), float(q[1]) - float(p[1])))


def mean_of(values: Iterable[float]) -> float:
    vals = [float(v) for v in values]
    if not vals:
        return 0.0
    return float(sum(vals) / len(vals))

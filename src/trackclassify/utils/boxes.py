from __future__ import annotations

import math
from typing import Optional

from trackclassify.utils.types import BBoxXYWH


def is_finite_box(b: BBoxXYWH) -> bool:
    return all(math.isfinite(float(v)) for v in b)


def box_inside_frame(b: BBoxXYWH, width: int, height: int) -> bool:
    x, y, w, h = b
    return x >= 0.0 and y >= 0.0 and (x + w) <= float(width) and (y + h) <= float(height)


def clip_box_xywh(b: BBoxXYWH, width: int, height: int) -> Optional[BBoxXYWH]:
    x, y, w, h = b
    x1 = max(0.0, min(float(width), float(x)))
    y1 = max(0.0, min(float(height), float(y)))
    x2 = max(0.0, min(float(width), float(x + w)))
    y2 = max(0.0, min(float(height), float(y + h)))
    if x2 <= x1 or y2 <= y1:
        return None
    return (x1, y1, x2 - x1, y2 - y1)


def xyxy_to_xywh(x1: float, y1: float, x2: float, y2: float) -> BBoxXYWH:
    if x2 < x1:
        x1, x2 = x2, x1
    if y2 < y1:
        y1, y2 = y2, y1
    return (float(x1), float(y1), float(x2 - x1), float(y2 - y1))

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

import numpy as np

from trackclassify.utils.types import Detection


@dataclass(frozen=True)
class DetectorInput:
    frame_index: int
    timestamp_s: float
    image_bgr: np.ndarray

    @property
    def frame_size(self) -> tuple[int, int]:
        h, w = self.image_bgr.shape[:2]
        return int(w), int(h)


class Detector(Protocol):
    def detect(self, inp: DetectorInput) -> List[Detection]:
        ...


class DetectorFactory(Protocol):
    def create(self, backend: str, params: Dict[str, Any]) -> Detector:
        ...

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from trackclassify.detection.base import Detector, DetectorInput
from trackclassify.errors import InferenceFailure
from trackclassify.utils.types import Detection


@dataclass
class MockDetector(Detector):
    """Replays scripted detections by frame index.

    Frames listed in ``fail_frames`` raise :class:`InferenceFailure`, which lets
    tests and dry runs exercise the skip path without a model.
    """

    script: Dict[int, List[Detection]] = field(default_factory=dict)
    fail_frames: Sequence[int] = ()

    def detect(self, inp: DetectorInput) -> List[Detection]:
        if inp.frame_index in self.fail_frames:
            raise InferenceFailure(f"scripted failure at frame {inp.frame_index}")
        return list(self.script.get(inp.frame_index, []))

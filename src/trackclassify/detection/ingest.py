from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

from trackclassify.errors import InvalidDetection
from trackclassify.utils.boxes import box_inside_frame, clip_box_xywh, is_finite_box
from trackclassify.utils.types import BBoxXYWH, Detection, FrameDetections


logger = logging.getLogger("trackclassify.detection.ingest")


@dataclass(frozen=True)
class IngestResult:
    detections: List[Detection]
    dropped: int


def _coerce(det: Detection) -> Tuple[float, BBoxXYWH]:
    try:
        score = float(det.score)
        x, y, w, h = (float(v) for v in det.box_xywh)
    except (TypeError, ValueError) as e:
        raise InvalidDetection(f"non-numeric score or box {det.box_xywh!r}: {e}") from e
    return score, (x, y, w, h)


def validate_detection(det: Detection, frame_width: int, frame_height: int, min_score: float) -> Detection:
    score, box = _coerce(det)
    if not math.isfinite(score) or score < 0.0 or score > 1.0:
        raise InvalidDetection(f"score out of range: {score}")
    if score < min_score:
        raise InvalidDetection(f"score {score:.3f} below floor {min_score:.3f}")
    if not is_finite_box(box):
        raise InvalidDetection(f"non-finite box: {box}")
    _, _, w, h = box
    if w <= 0.0 or h <= 0.0:
        raise InvalidDetection(f"degenerate box: {box}")
    if not box_inside_frame(box, frame_width, frame_height):
        raise InvalidDetection(f"box {box} outside {frame_width}x{frame_height} frame")
    if (score, box) != (det.score, det.box_xywh):
        return Detection(class_name=det.class_name, score=score, box_xywh=box)
    return det


def normalize_frame(frame: FrameDetections, min_score: float, clip_boxes: bool = False) -> IngestResult:
    kept: List[Detection] = []
    dropped = 0
    for det in frame.detections:
        try:
            if clip_boxes:
                score, box = _coerce(det)
                if is_finite_box(box):
                    clipped = clip_box_xywh(box, frame.frame_width, frame.frame_height)
                    if clipped is None:
                        raise InvalidDetection(f"box {box} does not overlap the frame")
                    if clipped != det.box_xywh:
                        det = Detection(class_name=det.class_name, score=score, box_xywh=clipped)
            kept.append(validate_detection(det, frame.frame_width, frame.frame_height, min_score))
        except InvalidDetection as e:
            dropped += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("dropped detection frame=%d class=%s: %s", frame.frame_index, det.class_name, e)
    return IngestResult(detections=kept, dropped=dropped)

from __future__ import annotations

from typing import Any, Dict, List

from trackclassify.detection.base import Detector
from trackclassify.detection.mock import MockDetector
from trackclassify.utils.types import Detection


def create_detector(backend: str, params: Dict[str, Any]) -> Detector:
    if backend == "mock":
        script_cfg = params.get("script", {}) or {}
        if not isinstance(script_cfg, dict):
            raise ValueError("script must map frame index to a list of detections")
        script: Dict[int, List[Detection]] = {
            int(k): [Detection.from_dict(d) for d in (v or [])] for k, v in script_cfg.items()
        }
        fail_frames = params.get("fail_frames", []) or []
        if not isinstance(fail_frames, list):
            raise ValueError("fail_frames must be a list")
        return MockDetector(script=script, fail_frames=[int(x) for x in fail_frames])

    if backend == "ultralytics_yolo":
        from trackclassify.detection.yolo_ultralytics import UltralyticsYoloDetector

        model_path = str(params["model_path"])
        conf_threshold = float(params.get("conf_threshold", 0.25))
        iou_threshold = float(params.get("iou_threshold", 0.5))
        device = params.get("device")
        class_whitelist = params.get("class_whitelist")
        if class_whitelist is not None and not isinstance(class_whitelist, list):
            raise ValueError("class_whitelist must be a list when provided")
        return UltralyticsYoloDetector(
            model_path=model_path,
            conf_threshold=conf_threshold,
            iou_threshold=iou_threshold,
            device=str(device) if device is not None else None,
            class_whitelist=[str(x) for x in class_whitelist] if class_whitelist is not None else None,
        )

    raise ValueError(f"Unknown detector backend: {backend}")

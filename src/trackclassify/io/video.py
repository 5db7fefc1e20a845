from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator

import cv2

from trackclassify.detection.base import DetectorInput


@dataclass(frozen=True)
class VideoReaderConfig:
    uri: str
    source_type: str
    fps_hint: float
    resize_enabled: bool
    resize_width: int
    resize_height: int

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "VideoReaderConfig":
        resize = d.get("resize", {}) or {}
        return VideoReaderConfig(
            uri=str(d.get("uri", "")),
            source_type=str(d.get("type", "file")).lower(),
            fps_hint=float(d.get("fps_hint", 30.0)),
            resize_enabled=bool(resize.get("enabled", False)),
            resize_width=int(resize.get("width", 640)),
            resize_height=int(resize.get("height", 480)),
        )

    @property
    def is_live(self) -> bool:
        return self.source_type in {"rtsp", "http", "camera"}


class VideoReader:
    """Iterates frames as :class:`DetectorInput` records.

    File sources use the container position as timestamp; live sources use the
    monotonic clock so track timeouts are immune to wall-clock changes.
    """

    def __init__(self, cfg: VideoReaderConfig) -> None:
        self._cfg = cfg
        source: Any = int(cfg.uri) if cfg.source_type == "camera" and cfg.uri.isdigit() else cfg.uri
        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {cfg.uri}")
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._t0 = time.monotonic()
        self._frame_index = 0
        self._fps = self._cap.get(cv2.CAP_PROP_FPS)
        if self._fps is None or self._fps <= 1e-3:
            self._fps = float(cfg.fps_hint)

    def __iter__(self) -> Iterator[DetectorInput]:
        while True:
            ok, frame = self._cap.read()
            if not ok:
                break
            if self._cfg.resize_enabled:
                frame = cv2.resize(frame, (self._cfg.resize_width, self._cfg.resize_height), interpolation=cv2.INTER_LINEAR)
            fi = self._frame_index
            self._frame_index += 1
            yield DetectorInput(frame_index=fi, timestamp_s=self._timestamp_s(fi), image_bgr=frame)

    def _timestamp_s(self, frame_index: int) -> float:
        if not self._cfg.is_live:
            pos_msec = self._cap.get(cv2.CAP_PROP_POS_MSEC)
            if pos_msec is not None and pos_msec > 0:
                return float(pos_msec) / 1000.0
            return float(frame_index) / float(self._fps)
        return float(time.monotonic() - self._t0)

    def close(self) -> None:
        self._cap.release()

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from trackclassify.config import EngineConfig
from trackclassify.detection.base import Detector
from trackclassify.detection.registry import create_detector
from trackclassify.engine import TrackClassifyEngine
from trackclassify.io.video import VideoReader, VideoReaderConfig
from trackclassify.output.notifier import Notifier, create_notifier
from trackclassify.output.report import EventReport
from trackclassify.output.sinks import CsvEventSink, EventSinks, JsonlEventSink
from trackclassify.pipeline.scheduler import FrameScheduler
from trackclassify.utils.config import resolve_path
from trackclassify.utils.types import TrackSnapshot


logger = logging.getLogger("trackclassify.pipeline.video")


@dataclass(frozen=True)
class VideoPipelineConfig:
    source: VideoReaderConfig
    detection_backend: str
    detection_params: Dict[str, Any]
    realtime: bool
    csv_path: Optional[str]
    jsonl_path: Optional[str]
    notifier: Dict[str, Any]
    report_path: Optional[str]

    @staticmethod
    def from_dict(d: Dict[str, Any], base_dir: str) -> "VideoPipelineConfig":
        source = dict(d.get("source", {}) or {})
        if str(source.get("type", "file")).lower() == "file" and source.get("uri"):
            source["uri"] = resolve_path(str(source["uri"]), base_dir)
        src = VideoReaderConfig.from_dict(source)
        det = d.get("detection", {}) or {}
        runtime = d.get("runtime", {}) or {}
        out = d.get("output", {}) or {}
        csv_cfg = out.get("csv", {}) or {}
        jsonl_cfg = out.get("jsonl", {}) or {}
        report_cfg = out.get("report", {}) or {}

        def _path(section: Dict[str, Any]) -> Optional[str]:
            if not bool(section.get("enabled", False)):
                return None
            p = section.get("path")
            if not p:
                raise ValueError("output path is required when a sink is enabled")
            return resolve_path(str(p), base_dir)

        return VideoPipelineConfig(
            source=src,
            detection_backend=str(det.get("backend", "mock")),
            detection_params=dict(det.get("params", {}) or {}),
            # live sources drop frames under load; files are replayed frame by frame
            realtime=bool(runtime.get("realtime", src.is_live)),
            csv_path=_path(csv_cfg),
            jsonl_path=_path(jsonl_cfg),
            notifier=dict(out.get("notifier", {}) or {"type": "log"}),
            report_path=_path(report_cfg),
        )


class VideoPipeline:
    def __init__(self, engine_cfg: EngineConfig, cfg: VideoPipelineConfig, detector: Optional[Detector] = None) -> None:
        self._cfg = cfg
        self._engine = TrackClassifyEngine(engine_cfg)
        self._detector = detector or create_detector(cfg.detection_backend, cfg.detection_params)
        self._sinks = EventSinks(
            csv=CsvEventSink(cfg.csv_path) if cfg.csv_path else None,
            jsonl=JsonlEventSink(cfg.jsonl_path) if cfg.jsonl_path else None,
        )
        self._notifier: Notifier = create_notifier(cfg.notifier)
        self._report = EventReport(person_class=engine_cfg.person_class)
        self._scheduler = FrameScheduler(self._engine, self._detector, on_frame=self._observe)

    @property
    def engine(self) -> TrackClassifyEngine:
        return self._engine

    @property
    def report(self) -> EventReport:
        return self._report

    def run(self) -> EventReport:
        reader = VideoReader(self._cfg.source)
        self._sinks.open()
        unsubscribe = [
            self._engine.subscribe(self._sinks.write),
            self._engine.subscribe(self._notifier.notify),
            self._engine.subscribe(self._report.add),
        ]
        if self._cfg.realtime:
            self._scheduler.start()
        try:
            for frame in reader:
                if self._cfg.realtime:
                    self._scheduler.offer(frame)
                else:
                    self._scheduler.process_one(frame)
        except KeyboardInterrupt:
            logger.info("interrupted; stopping")
        finally:
            self._scheduler.stop()
            reader.close()
            for u in unsubscribe:
                u()
            self._sinks.close()
            self._write_report()
        return self._report

    def _observe(self, timestamp_s: float, tracks: List[TrackSnapshot]) -> None:
        self._report.observe_frame(timestamp_s, tracks)

    def _write_report(self) -> None:
        if not self._cfg.report_path:
            return
        path = Path(self._cfg.report_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self._report.render_text(), encoding="utf-8")
        logger.info("report written to %s", path)

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from trackclassify.classification.activity import ActivityThresholds, classify_activity
from trackclassify.config import EngineConfig
from trackclassify.detection.ingest import normalize_frame
from trackclassify.events.density import DensityRule
from trackclassify.events.engine import EventEngine
from trackclassify.motion.estimator import estimate_motion
from trackclassify.output.stream import EventStream
from trackclassify.tracking.base import Associator
from trackclassify.tracking.registry import create_associator
from trackclassify.tracking.tracks import TrackRegistry
from trackclassify.utils.types import DensityLevel, Detection, Event, FrameDetections, TrackSnapshot


logger = logging.getLogger("trackclassify.engine")

DetectionLike = Union[Detection, Mapping[str, Any]]

_AGE_RULES = ("density",)


@dataclass
class EngineState:
    registry: TrackRegistry
    events: EventEngine
    frames_processed: int = 0
    frames_rejected: int = 0
    detections_dropped: int = 0
    last_timestamp_s: Optional[float] = None
    stopped: bool = False

    @property
    def density_level(self) -> Optional[DensityLevel]:
        rule = self.events.rule("density")
        if isinstance(rule, DensityRule):
            return rule.level
        return None


class TrackClassifyEngine:
    """Turns per-frame detections into tracks, activities and debounced events.

    Drive it from a single thread: one :meth:`submit_frame` call runs ingest,
    expiry, association, classification and the event rules to completion.
    Events of a frame are published only after the whole pass succeeded.
    """

    def __init__(self, config: Optional[EngineConfig] = None, associator: Optional[Associator] = None) -> None:
        self._cfg = config or EngineConfig()
        self._cfg.validate()
        self._thresholds = ActivityThresholds(
            jump_delta=self._cfg.jump_delta,
            run_speed=self._cfg.run_speed,
            walk_speed=self._cfg.walk_speed,
            exit_delta_x=self._cfg.exit_delta_x,
            exit_delta_y=self._cfg.exit_delta_y,
        )
        self._associator = associator or create_associator(self._cfg.association_backend, {})
        self._stream = EventStream()
        self._state = self._new_state()
        logger.info(
            "engine ready backend=%s gate=%.1fpx timeout=%.0fms tracked=%s",
            self._cfg.association_backend,
            self._cfg.association_gate_distance,
            self._cfg.track_timeout_ms,
            ",".join(sorted(self._cfg.tracked_classes)) or "*",
        )

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def events(self) -> EventStream:
        return self._stream

    @property
    def stopped(self) -> bool:
        return self._state.stopped

    def subscribe(self, callback: Callable[[Event], None]) -> Callable[[], None]:
        return self._stream.subscribe(callback)

    def current_tracks(self) -> List[TrackSnapshot]:
        return [t.snapshot() for t in self._state.registry.tracks()]

    def submit_frame(
        self,
        timestamp_s: float,
        frame_width: int,
        frame_height: int,
        detections: Sequence[DetectionLike],
        frame_index: Optional[int] = None,
    ) -> None:
        st = self._state
        if st.stopped:
            logger.debug("engine stopped; frame at t=%.3f ignored", timestamp_s)
            return
        ts = float(timestamp_s)
        if st.last_timestamp_s is not None and ts < st.last_timestamp_s:
            st.frames_rejected += 1
            logger.warning("out-of-order frame t=%.3f < last t=%.3f; dropped", ts, st.last_timestamp_s)
            return

        idx = st.frames_processed if frame_index is None else int(frame_index)
        try:
            events = self._process(self._to_frame(idx, ts, frame_width, frame_height, detections))
        except Exception:
            logger.exception("frame %d at t=%.3f failed; no update this frame", idx, ts)
            return

        st.frames_processed += 1
        st.last_timestamp_s = ts
        if events and not st.stopped:
            self._stream.publish(events)

    def age(self, timestamp_s: float) -> None:
        """Expire stale tracks without new detections (e.g. failed inference).

        Only the density rule is re-evaluated: the other rules need fresh
        observations.
        """
        st = self._state
        if st.stopped:
            return
        ts = float(timestamp_s)
        if st.last_timestamp_s is not None and ts < st.last_timestamp_s:
            return
        st.registry.expire(ts)
        tracks = st.registry.tracks()
        events = st.events.evaluate(tracks, ts, only=_AGE_RULES)
        st.events.prune(t.track_id for t in tracks)
        st.last_timestamp_s = ts
        if events:
            self._stream.publish(events)

    def stop(self) -> None:
        if self._state.stopped:
            return
        n = len(self._state.registry)
        self._state.registry.clear()
        self._state.events.reset()
        self._state.stopped = True
        logger.info("engine stopped after %d frames; dropped %d live tracks", self._state.frames_processed, n)

    def reset(self) -> None:
        """Discard all state and start over with a fresh id space."""
        self._state = self._new_state()

    def _new_state(self) -> EngineState:
        cfg = self._cfg
        registry = TrackRegistry(
            gate_distance=cfg.association_gate_distance,
            timeout_s=cfg.track_timeout_s,
            size_gate_factor=cfg.size_gate_factor,
            tracked_classes=cfg.tracked_classes,
            position_history_size=cfg.position_history_size,
            velocity_window_size=cfg.velocity_window_size,
            associator=self._associator,
        )
        return EngineState(registry=registry, events=EventEngine.from_config(cfg))

    def _to_frame(self, idx: int, ts: float, width: int, height: int, detections: Sequence[DetectionLike]) -> FrameDetections:
        dets: List[Detection] = []
        for d in detections:
            if isinstance(d, Detection):
                dets.append(d)
                continue
            try:
                dets.append(Detection.from_dict(d))
            except (KeyError, TypeError, ValueError) as e:
                self._state.detections_dropped += 1
                logger.debug("dropped malformed detection %r: %s", d, e)
        return FrameDetections(frame_index=idx, timestamp_s=ts, frame_width=int(width), frame_height=int(height), detections=dets)

    def _process(self, frame: FrameDetections) -> List[Event]:
        st = self._state
        cfg = self._cfg
        ingest = normalize_frame(frame, cfg.min_detection_score, clip_boxes=cfg.clip_boxes)
        st.detections_dropped += ingest.dropped

        scale = cfg.scale_for(frame.frame_width, frame.frame_height)
        thresholds = self._thresholds.scaled(scale)

        st.registry.expire(frame.timestamp_s)
        update = st.registry.update(ingest.detections, frame.timestamp_s, scale)
        for t in update.matched:
            t.activity = classify_activity(estimate_motion(t, cfg.velocity_window_size), thresholds)

        tracks = st.registry.tracks()
        events = st.events.evaluate(tracks, frame.timestamp_s, scale)
        st.events.prune(t.track_id for t in tracks)
        return events

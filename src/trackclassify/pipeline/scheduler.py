from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from trackclassify.detection.base import Detector, DetectorInput
from trackclassify.engine import TrackClassifyEngine
from trackclassify.errors import EngineStopped, InferenceFailure
from trackclassify.utils.types import TrackSnapshot


logger = logging.getLogger("trackclassify.pipeline.scheduler")

FrameCallback = Callable[[float, List[TrackSnapshot]], None]


class FrameChannel:
    """Single-slot hand-off between a frame source and the engine thread.

    ``offer`` never blocks: a frame is refused (dropped) while the slot holds
    an unconsumed frame or while the consumer is still busy with the previous
    one. This bounds staleness to one frame instead of building a backlog.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: Optional[DetectorInput] = None
        self._busy = False
        self._closed = False
        self.offered = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def offer(self, item: DetectorInput) -> bool:
        with self._cond:
            if self._closed:
                raise EngineStopped("frame channel is closed")
            self.offered += 1
            if self._busy or self._item is not None:
                self.dropped += 1
                return False
            self._item = item
            self._cond.notify()
            return True

    def take(self, timeout: Optional[float] = None) -> Optional[DetectorInput]:
        with self._cond:
            if self._item is None and not self._closed:
                self._cond.wait(timeout)
            if self._item is None:
                return None
            item = self._item
            self._item = None
            self._busy = True
            return item

    def done(self) -> None:
        with self._cond:
            self._busy = False

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._item = None
            self._cond.notify_all()


@dataclass
class SchedulerStats:
    processed: int = 0
    inference_failures: int = 0


class FrameScheduler:
    """Pull loop that owns the engine.

    Exactly one thread (the worker started by :meth:`start`, or the caller of
    :meth:`process_one`) touches the engine, so frame N is fully processed
    before frame N+1 is associated.
    """

    def __init__(
        self,
        engine: TrackClassifyEngine,
        detector: Detector,
        channel: Optional[FrameChannel] = None,
        on_frame: Optional[FrameCallback] = None,
        poll_s: float = 0.1,
    ) -> None:
        self._engine = engine
        self._detector = detector
        self._channel = channel or FrameChannel()
        self._on_frame = on_frame
        self._poll_s = float(poll_s)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.stats = SchedulerStats()

    @property
    def channel(self) -> FrameChannel:
        return self._channel

    @property
    def engine(self) -> TrackClassifyEngine:
        return self._engine

    def offer(self, frame: DetectorInput) -> bool:
        return self._channel.offer(frame)

    def process_one(self, frame: DetectorInput) -> bool:
        try:
            dets = self._detector.detect(frame)
        except InferenceFailure as e:
            self.stats.inference_failures += 1
            logger.warning("inference failed for frame %d: %s; frame skipped", frame.frame_index, e)
            self._engine.age(frame.timestamp_s)
            return False
        width, height = frame.frame_size
        self._engine.submit_frame(frame.timestamp_s, width, height, dets, frame_index=frame.frame_index)
        self.stats.processed += 1
        if self._on_frame is not None:
            self._on_frame(frame.timestamp_s, self._engine.current_tracks())
        return True

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        self._thread = threading.Thread(target=self._run, name="trackclassify-engine", daemon=True)
        self._thread.start()

    def stop(self, timeout_s: float = 5.0) -> None:
        self._stop.set()
        self._channel.close()
        if self._thread is None:
            self._engine.stop()
        else:
            self._thread.join(timeout=timeout_s)
            if self._thread.is_alive():
                # the worker still owns the engine and stops it on exit
                logger.warning("engine thread did not finish within %.1fs; engine stops when it exits", timeout_s)
                return
            self._thread = None
        logger.info(
            "scheduler stopped processed=%d dropped=%d inference_failures=%d",
            self.stats.processed,
            self._channel.dropped,
            self.stats.inference_failures,
        )

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                frame = self._channel.take(timeout=self._poll_s)
                if frame is None:
                    if self._channel.closed:
                        break
                    continue
                try:
                    self.process_one(frame)
                except Exception:
                    logger.exception("frame %d failed in scheduler", frame.frame_index)
                finally:
                    self._channel.done()
        finally:
            self._engine.stop()

import threading
import time

import numpy as np
import pytest

from trackclassify.detection.base import DetectorInput
from trackclassify.detection.mock import MockDetector
from trackclassify.detection.registry import create_detector
from trackclassify.engine import TrackClassifyEngine
from trackclassify.errors import EngineStopped
from trackclassify.pipeline.scheduler import FrameChannel, FrameScheduler
from trackclassify.utils.types import Detection


def _frame(idx: int, ts: float) -> DetectorInput:
    return DetectorInput(frame_index=idx, timestamp_s=ts, image_bgr=np.zeros((480, 640, 3), dtype=np.uint8))


def _person(x: float, y: float) -> Detection:
    return Detection("person", 0.9, (x, y, 40.0, 40.0))


def test_channel_drops_while_slot_full_or_consumer_busy() -> None:
    ch = FrameChannel()
    assert ch.offer(_frame(0, 0.0)) is True
    assert ch.offer(_frame(1, 0.033)) is False
    taken = ch.take(timeout=0.0)
    assert taken is not None and taken.frame_index == 0
    # consumer still busy with frame 0
    assert ch.offer(_frame(2, 0.066)) is False
    ch.done()
    assert ch.offer(_frame(3, 0.1)) is True
    assert (ch.offered, ch.dropped) == (4, 2)


def test_closed_channel_refuses_frames() -> None:
    ch = FrameChannel()
    ch.close()
    assert ch.take(timeout=0.0) is None
    with pytest.raises(EngineStopped):
        ch.offer(_frame(0, 0.0))


def test_inference_failure_skips_frame_but_ages_tracks() -> None:
    engine = TrackClassifyEngine()
    detector = MockDetector(script={0: [_person(100, 100)]}, fail_frames=[1])
    sched = FrameScheduler(engine, detector)

    assert sched.process_one(_frame(0, 0.0)) is True
    assert len(engine.current_tracks()) == 1
    assert sched.process_one(_frame(1, 1.5)) is False
    assert engine.current_tracks() == []
    assert (sched.stats.processed, sched.stats.inference_failures) == (1, 1)


def test_worker_thread_processes_offered_frames_and_stops_engine() -> None:
    engine = TrackClassifyEngine()
    detector = MockDetector(script={0: [_person(100, 100)]})
    seen = threading.Event()
    snapshots = []

    def on_frame(ts, tracks) -> None:
        snapshots.append((ts, tracks))
        seen.set()

    sched = FrameScheduler(engine, detector, on_frame=on_frame, poll_s=0.01)
    sched.start()
    try:
        assert sched.offer(_frame(0, 0.0)) is True
        assert seen.wait(timeout=5.0)
    finally:
        sched.stop()

    assert snapshots[0][0] == 0.0
    assert [t.track_id for t in snapshots[0][1]] == [1]
    assert engine.stopped
    assert engine.current_tracks() == []
    with pytest.raises(EngineStopped):
        sched.offer(_frame(1, 0.033))


def test_create_detector_mock_from_config() -> None:
    det = create_detector(
        "mock",
        {"script": {"0": [{"class": "person", "score": 0.9, "box": [1, 2, 3, 4]}]}, "fail_frames": [2]},
    )
    assert det.detect(_frame(0, 0.0)) == [Detection("person", 0.9, (1.0, 2.0, 3.0, 4.0))]
    assert det.detect(_frame(1, 0.0)) == []
    with pytest.raises(ValueError):
        create_detector("nope", {})


class _BlockingDetector:
    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def detect(self, inp: DetectorInput):
        self.entered.set()
        self.release.wait(timeout=5.0)
        return [_person(100, 100)]


def test_stop_timeout_leaves_engine_to_the_worker() -> None:
    engine = TrackClassifyEngine()
    detector = _BlockingDetector()
    sched = FrameScheduler(engine, detector, poll_s=0.01)
    sched.start()
    assert sched.offer(_frame(0, 0.0)) is True
    assert detector.entered.wait(timeout=5.0)

    sched.stop(timeout_s=0.05)
    assert not engine.stopped

    detector.release.set()
    deadline = time.monotonic() + 5.0
    while not engine.stopped and time.monotonic() < deadline:
        time.sleep(0.01)
    assert engine.stopped
    assert engine.current_tracks() == []
    assert sched.stats.processed == 1


def test_stop_without_worker_stops_engine() -> None:
    engine = TrackClassifyEngine()
    sched = FrameScheduler(engine, MockDetector())
    sched.stop()
    assert engine.stopped

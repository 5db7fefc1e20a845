from .config import load_yaml, resolve_path
from .logging import setup_logging
from .types import (
    Activity,
    BBoxXYWH,
    Detection,
    Event,
    EventKind,
    FrameDetections,
    Severity,
    Track,
    TrackSnapshot,
)

__all__ = [
    "Activity",
    "BBoxXYWH",
    "Detection",
    "Event",
    "EventKind",
    "FrameDetections",
    "Severity",
    "Track",
    "TrackSnapshot",
    "load_yaml",
    "resolve_path",
    "setup_logging",
]

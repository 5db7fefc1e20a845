from .config import EngineConfig
from .engine import EngineState, TrackClassifyEngine
from .errors import ConfigurationError, EngineStopped, InferenceFailure, InvalidDetection, TrackClassifyError
from .utils.types import Detection, Event, TrackSnapshot

__all__ = [
    "ConfigurationError",
    "Detection",
    "EngineConfig",
    "EngineState",
    "EngineStopped",
    "Event",
    "InferenceFailure",
    "InvalidDetection",
    "TrackClassifyEngine",
    "TrackClassifyError",
    "TrackSnapshot",
]

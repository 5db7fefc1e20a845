from .base import Detector, DetectorFactory, DetectorInput
from .ingest import IngestResult, normalize_frame, validate_detection
from .mock import MockDetector
from .registry import create_detector

__all__ = [
    "Detector",
    "DetectorFactory",
    "DetectorInput",
    "IngestResult",
    "MockDetector",
    "create_detector",
    "normalize_frame",
    "validate_detection",
]

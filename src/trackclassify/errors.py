from __future__ import annotations


class TrackClassifyError(Exception):
    pass


class ConfigurationError(TrackClassifyError, ValueError):
    """Invalid engine configuration. Raised at construction, never clamped."""


class InvalidDetection(TrackClassifyError, ValueError):
    """A single detection failed validation. Ingest drops it without surfacing."""


class InferenceFailure(TrackClassifyError, RuntimeError):
    """The detection model failed for one frame."""


class EngineStopped(TrackClassifyError, RuntimeError):
    pass

# errors.py
"""Exceptions raised by the touch-tracking pipeline."""
from __future__ import annotations


class TouchTrackingError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(TouchTrackingError, ValueError):
    """Raised for malformed frames or an empty calibration set."""


class InvalidConfiguration(TouchTrackingError, ValueError):
    """Raised when a config value can never produce a valid detection."""


class OutOfSequence(TouchTrackingError, ValueError):
    """Raised when the tracker sees a frame index that is not strictly increasing."""


class SensorAcquisitionFailure(TouchTrackingError, RuntimeError):
    """Raised when the depth source cannot deliver a frame."""


class SourceExhausted(SensorAcquisitionFailure):
    """A finite source (e.g. a recording) has no frames left."""

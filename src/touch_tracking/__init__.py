# src/touch_tracking/__init__.py
"""Touch-tracking package – re-export high-level API."""
from .background import BackgroundModel              # noqa: F401
from .camera import (                                # noqa: F401
    ArrayDepthSource, DepthSource, OpenNIDepthSource, ReplayDepthSource,
)
from .common import (                                # noqa: F401
    CursorEvent, CursorReport, CursorState, EventKind, FrameResult, TouchCandidate,
)
from .config import (                                # noqa: F401
    BackgroundConfig, DetectorConfig, Rect, SourceConfig, TrackerConfig,
)
from .detector import TouchDetector, detect_touches  # noqa: F401
from .errors import (                                # noqa: F401
    InvalidConfiguration, InvalidInput, OutOfSequence,
    SensorAcquisitionFailure, SourceExhausted, TouchTrackingError,
)
from .processor import TouchProcessor                # noqa: F401
from .tracker import CursorTracker                   # noqa: F401

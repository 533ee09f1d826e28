# common.py
"""Objects that are shared across multiple modules."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple


class CursorState(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"
    REMOVED = "removed"


class EventKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True)
class TouchCandidate:
    """One connected blob inside the depth band. Pixel space, no identity."""
    x: float
    y: float
    area: int


@dataclass(frozen=True)
class CursorEvent:
    kind: EventKind
    session_id: int
    x: Optional[float] = None
    y: Optional[float] = None

    def __str__(self) -> str:
        if self.kind is EventKind.REMOVE:
            return f"REMOVE({self.session_id})"
        return f"{self.kind.name}({self.session_id}, {self.x:.4f}, {self.y:.4f})"


@dataclass(frozen=True)
class CursorReport:
    """
    A single-frame snapshot of one cursor.
    Positions are normalized to [0,1]² relative to the ROI.
    """
    session_id: int
    x: float
    y: float
    state: CursorState
    last_frame: int
    first_frame: int


@dataclass(frozen=True)
class FrameResult:
    """Everything one committed frame produced, in emission order."""
    frame_index: int
    t_capture: float
    candidates: Tuple[TouchCandidate, ...]
    points: Tuple[Tuple[float, float], ...]
    events: Tuple[CursorEvent, ...]


# Receives one FrameResult per committed frame (protocol encoder, logger, ...)
EventSink = Callable[[FrameResult], None]

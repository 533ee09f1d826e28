# tracker.py
"""Greedy nearest-neighbour cursor tracker with a one-frame grace period."""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Set, Tuple

from touch_tracking.common import CursorEvent, CursorReport, CursorState, EventKind
from touch_tracking.config import TrackerConfig
from touch_tracking.errors import OutOfSequence
from touch_tracking.helpers import PositionFilter

logger = logging.getLogger(__name__)


class Cursor:
    """Mutable tracker-side record. Only CursorTracker.update writes to it."""

    __slots__ = ("session_id", "x", "y", "state", "last_frame", "first_frame", "filter")

    def __init__(self, session_id: int, x: float, y: float, frame_index: int):
        self.session_id = session_id
        self.x = x
        self.y = y
        self.state = CursorState.ACTIVE
        self.last_frame = frame_index
        self.first_frame = frame_index
        self.filter: Optional[PositionFilter] = None

    def report(self) -> CursorReport:
        return CursorReport(
            session_id=self.session_id,
            x=self.x,
            y=self.y,
            state=self.state,
            last_frame=self.last_frame,
            first_frame=self.first_frame,
        )


class CursorTracker:
    _id_counter = 0

    def __init__(self, cfg: Optional[TrackerConfig] = None):
        self.cfg = cfg or TrackerConfig()
        self.cfg.validate()
        self._cursors: Dict[int, Cursor] = {}
        self._retired: Set[int] = set()
        self.last_frame: Optional[int] = None

    # ----------------- Private helpers -----------------
    @classmethod
    def _next_id(cls) -> int:
        # Class-wide so ids stay unique for the whole process
        cls._id_counter += 1
        return cls._id_counter

    def _closest(
        self, x: float, y: float, exclude: Optional[Set[int]] = None
    ) -> Optional[Cursor]:
        best: Optional[Cursor] = None
        best_d = math.inf
        for cur in self._cursors.values():
            if exclude and cur.session_id in exclude:
                continue
            d = math.hypot(cur.x - x, cur.y - y)
            if d < best_d:
                best, best_d = cur, d
        return best

    def _move(self, cur: Cursor, x: float, y: float, frame_index: int) -> None:
        if cur.filter is not None:
            x, y = cur.filter.update(x, y, frame_index - cur.last_frame)
        cur.x, cur.y = x, y
        cur.state = CursorState.ACTIVE
        cur.last_frame = frame_index

    def _create(self, x: float, y: float, frame_index: int) -> Cursor:
        sid = self._next_id()
        cur = Cursor(sid, x, y, frame_index)
        if self.cfg.smoothing:
            cur.filter = PositionFilter(self.cfg, x, y)
        self._cursors[sid] = cur
        return cur

    # ------------------ Public API --------------------
    def update(
        self, points: Iterable[Tuple[float, float]], frame_index: int
    ) -> List[CursorEvent]:
        """
        Commit one frame of normalized touch points and return its events.

        Each point claims the nearest cursor not yet matched this frame;
        unmatched points become new cursors (ADD). Cursors left unmatched
        go ACTIVE -> STOPPED silently, and STOPPED -> REMOVED with a REMOVE
        event. The matching is greedy, so the result depends on point order.
        """
        if frame_index is None:
            raise OutOfSequence("frame_index is required")
        if self.last_frame is not None and frame_index <= self.last_frame:
            raise OutOfSequence(
                f"frame {frame_index} does not follow frame {self.last_frame}"
            )

        stopped_before = {
            sid for sid, cur in self._cursors.items() if cur.state is CursorState.STOPPED
        }
        matched: Set[int] = set()
        events: List[CursorEvent] = []

        for x, y in points:
            x, y = float(x), float(y)
            cur = self._closest(x, y, exclude=matched)
            if cur is not None:
                self._move(cur, x, y, frame_index)
                kind = EventKind.UPDATE
            else:
                cur = self._create(x, y, frame_index)
                kind = EventKind.ADD
            matched.add(cur.session_id)
            events.append(CursorEvent(kind, cur.session_id, cur.x, cur.y))

        for sid in sorted(self._cursors):
            if sid in matched:
                continue
            cur = self._cursors[sid]
            if sid in stopped_before:
                cur.state = CursorState.REMOVED
                del self._cursors[sid]
                self._retired.add(sid)
                events.append(CursorEvent(EventKind.REMOVE, sid))
            else:
                cur.state = CursorState.STOPPED

        self.last_frame = frame_index
        for ev in events:
            logger.debug("[Tracker] frame %d %s", frame_index, ev)
        return events

    # ------------------ Queries ------------------------
    def nearest(self, x: float, y: float) -> Optional[CursorReport]:
        """Closest live cursor to (x, y); STOPPED cursors count, like in matching."""
        cur = self._closest(x, y)
        return cur.report() if cur else None

    def get(self, session_id: int) -> Optional[CursorReport]:
        cur = self._cursors.get(session_id)
        return cur.report() if cur else None

    def cursors(self) -> List[CursorReport]:
        return [cur.report() for cur in self._cursors.values()]

    def snapshot(self) -> Tuple[Optional[int], Tuple[CursorReport, ...]]:
        """(last committed frame, live cursors) for full-state re-announcement."""
        return self.last_frame, tuple(self.cursors())

    def is_retired(self, session_id: int) -> bool:
        return session_id in self._retired

    def __len__(self) -> int:
        return len(self._cursors)

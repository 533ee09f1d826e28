# detector.py
"""Background-subtraction touch detector."""
from __future__ import annotations

import dataclasses
import logging
from typing import List, Tuple

import cv2
import numpy as np

from touch_tracking.background import BackgroundModel
from touch_tracking.common import TouchCandidate
from touch_tracking.config import (
    DetectorConfig,
    Rect,
    validate_depth_band,
    validate_min_area,
)
from touch_tracking.errors import InvalidInput

logger = logging.getLogger(__name__)


def touch_mask(
    frame: np.ndarray, background: np.ndarray, depth_band: Tuple[int, int]
) -> np.ndarray:
    """uint8 0/255 mask of pixels lying inside the depth band above the surface."""
    # int32 so that background - frame can go negative without wrapping
    foreground = background.astype(np.int32) - frame.astype(np.int32)
    lo, hi = depth_band
    touch = (foreground >= lo) & (foreground < hi)
    return touch.astype(np.uint8) * 255


def detect_touches(
    frame: np.ndarray,
    background: BackgroundModel,
    roi: Rect,
    depth_band: Tuple[int, int],
    min_area: int,
    connectivity: int = 8,
) -> List[TouchCandidate]:
    """Returns the touch blobs inside ``roi`` with centroids in full-frame pixels."""
    if frame.shape != background.shape:
        raise InvalidInput(
            f"Frame shape {frame.shape} does not match background {background.shape}"
        )
    roi.check_fits(frame.shape)

    fr = frame[roi.y_min:roi.y_max, roi.x_min:roi.x_max]
    bg = background.depth[roi.y_min:roi.y_max, roi.x_min:roi.x_max]
    mask = touch_mask(fr, bg, depth_band)

    num_labels, _labels, stats, centroids = cv2.connectedComponentsWithStats(
        mask, connectivity=connectivity
    )

    out: List[TouchCandidate] = []
    # label 0 is the background component
    for lab in range(1, num_labels):
        area = int(stats[lab, cv2.CC_STAT_AREA])
        if area < min_area:
            continue
        cx, cy = centroids[lab]
        out.append(
            TouchCandidate(x=float(cx) + roi.x_min, y=float(cy) + roi.y_min, area=area)
        )
    return out


class TouchDetector:
    def __init__(self, config: DetectorConfig):
        config.validate()
        # Own copy: runtime setters must not touch the caller's config
        self.config = dataclasses.replace(config)

    # ------------------ Runtime setters -----------------
    def set_roi(self, roi: Rect) -> None:
        roi.validate()
        self.config.roi = roi
        logger.info("[Detector] ROI set to %s", roi)

    def set_depth_band(self, depth_band: Tuple[int, int]) -> None:
        depth_band = (int(depth_band[0]), int(depth_band[1]))
        validate_depth_band(depth_band)
        self.config.depth_band = depth_band
        logger.info("[Detector] Depth band set to %s mm", depth_band)

    def set_min_area(self, min_area: int) -> None:
        validate_min_area(min_area)
        self.config.min_area = int(min_area)
        logger.info("[Detector] Min area set to %d px", min_area)

    # ------------------ Public API --------------------
    def detect(self, frame: np.ndarray, background: BackgroundModel) -> List[TouchCandidate]:
        cfg = self.config
        candidates = detect_touches(
            frame,
            background,
            cfg.roi,
            cfg.depth_band,
            cfg.min_area,
            cfg.connectivity,
        )
        logger.debug("[Detector] %d candidate(s)", len(candidates))
        return candidates

    def normalize(self, candidate: TouchCandidate) -> Tuple[float, float]:
        return self.config.roi.normalize(candidate.x, candidate.y)

# conftest.py
"""Shared frame builders for the touch-tracking tests."""
from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np
import pytest

from touch_tracking.background import BackgroundModel
from touch_tracking.config import DetectorConfig, Rect

SURFACE_MM = 2000
SHAPE = (120, 160)  # rows, cols

# (x_min, y_min, size, depth)
Block = Tuple[int, int, int, int]


def flat_frame(depth: int = SURFACE_MM, shape: Tuple[int, int] = SHAPE) -> np.ndarray:
    return np.full(shape, depth, dtype=np.uint16)


def frame_with_blocks(
    blocks: Iterable[Block], base: int = SURFACE_MM, shape: Tuple[int, int] = SHAPE
) -> np.ndarray:
    frame = flat_frame(base, shape)
    for x, y, size, depth in blocks:
        frame[y:y + size, x:x + size] = depth
    return frame


@pytest.fixture
def background() -> BackgroundModel:
    return BackgroundModel.build([flat_frame()])


@pytest.fixture
def detector_cfg() -> DetectorConfig:
    return DetectorConfig(roi=Rect(0, 0, 100, 100), depth_band=(10, 20), min_area=50)

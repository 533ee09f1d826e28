# background.py
"""Averaged reference depth surface ("no touch")."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from touch_tracking.errors import InvalidInput


class BackgroundModel:
    def __init__(self, depth: np.ndarray, sample_count: int):
        self.depth = depth
        self.depth.flags.writeable = False
        self.sample_count = sample_count

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.depth.shape

    @classmethod
    def build(cls, frames: Sequence[np.ndarray]) -> "BackgroundModel":
        """
        Per-pixel mean of ``frames``.

        Accumulates in float64 and rounds back to the frames' dtype. No
        outlier rejection: the surface must be clear while these frames are
        captured.
        """
        if len(frames) < 1:
            raise InvalidInput("Background needs at least one frame")

        first = np.asarray(frames[0])
        if first.ndim != 2:
            raise InvalidInput(f"Depth frames must be 2D, got shape {first.shape}")

        acc = np.zeros(first.shape, dtype=np.float64)
        for i, frame in enumerate(frames):
            frame = np.asarray(frame)
            if frame.shape != first.shape:
                raise InvalidInput(
                    f"Frame {i} has shape {frame.shape}, expected {first.shape}"
                )
            acc += frame

        acc /= len(frames)
        mean = np.rint(acc).astype(first.dtype)
        return cls(mean, len(frames))

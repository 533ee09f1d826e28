# camera.py
"""Pull-based depth sources: OpenNI capture, in-memory frames and recordings."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

import cv2
import numpy as np

from touch_tracking.config import SourceConfig
from touch_tracking.errors import InvalidInput, SensorAcquisitionFailure, SourceExhausted

logger = logging.getLogger(__name__)


def _freeze(depth: np.ndarray) -> np.ndarray:
    """Captured frames are handed out read-only."""
    depth = np.array(depth, dtype=np.uint16)
    depth.flags.writeable = False
    return depth


class DepthSource(Protocol):
    def open(self) -> bool: ...

    def read(self) -> np.ndarray:
        """Block until the next frame is available; raise SensorAcquisitionFailure otherwise."""
        ...

    def close(self) -> None: ...


# ------------------------------------------------------------------ #
#   O P E N N I   D E V I C E
# ------------------------------------------------------------------ #
class OpenNIDepthSource:
    """Thin VideoCapture wrapper around the OpenNI2 depth-map channel."""

    def __init__(self, config: SourceConfig) -> None:
        self.config = config
        self.cap: Optional[cv2.VideoCapture] = None
        self.actual_width: int = 0
        self.actual_height: int = 0

    def open(self) -> bool:
        self.cap = cv2.VideoCapture(self.config.device_index, cv2.CAP_OPENNI2)
        if not self.cap or not self.cap.isOpened():
            logger.error("[Camera] Could not open OpenNI device %d", self.config.device_index)
            self.cap = None
            return False

        self.actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("[Camera] OpenNI depth %dx%d", self.actual_width, self.actual_height)
        return True

    def is_opened(self) -> bool:
        return bool(self.cap and self.cap.isOpened())

    def read(self) -> np.ndarray:
        if not self.is_opened():
            raise SensorAcquisitionFailure("Depth device is not open")
        if not self.cap.grab():
            raise SensorAcquisitionFailure("Depth device returned no frame")
        ret, depth = self.cap.retrieve(flag=cv2.CAP_OPENNI_DEPTH_MAP)
        if not ret or depth is None:
            raise SensorAcquisitionFailure("Could not retrieve the depth map")
        return _freeze(depth)

    def close(self) -> None:
        if self.cap:
            logger.info("[Camera] Releasing capture device")
            self.cap.release()
            self.cap = None


# ------------------------------------------------------------------ #
#   I N - M E M O R Y   /   R E C O R D E D
# ------------------------------------------------------------------ #
class ArrayDepthSource:
    """Serves a fixed sequence of depth frames, optionally looping."""

    def __init__(self, frames: Sequence[np.ndarray], loop: bool = False) -> None:
        self.frames = [_freeze(np.asarray(f)) for f in frames]
        self.loop = loop
        self.position = 0

    def open(self) -> bool:
        return True

    def read(self) -> np.ndarray:
        if self.position >= len(self.frames):
            if not self.loop or not self.frames:
                raise SourceExhausted(f"No frames left after {self.position}")
            self.position = 0
        frame = self.frames[self.position]
        self.position += 1
        return frame

    def close(self) -> None:
        pass


class ReplayDepthSource(ArrayDepthSource):
    """
    Replays a recording saved with ``numpy.save`` (an (N, H, W) stack) or
    ``numpy.savez`` (first array in the archive).
    """

    def __init__(self, path: str | Path, loop: bool = False) -> None:
        self.path = Path(path).expanduser()
        super().__init__([], loop=loop)

    def open(self) -> bool:
        try:
            data = np.load(self.path)
        except (OSError, ValueError) as exc:
            logger.error("[Camera] Could not load recording %s: %s", self.path, exc)
            return False
        if isinstance(data, np.lib.npyio.NpzFile):
            with data:
                data = data[data.files[0]]
        if data.ndim == 2:
            data = data[np.newaxis]
        if data.ndim != 3:
            raise InvalidInput(f"Recording {self.path} has shape {data.shape}, expected (N, H, W)")
        self.frames = [_freeze(f) for f in data]
        self.position = 0
        logger.info(
            "[Camera] Replaying %d frame(s) of %dx%d from %s",
            len(self.frames), data.shape[2], data.shape[1], self.path,
        )
        return True


def make_source(config: SourceConfig) -> DepthSource:
    if config.replay_path:
        return ReplayDepthSource(config.replay_path, loop=config.replay_loop)
    return OpenNIDepthSource(config)

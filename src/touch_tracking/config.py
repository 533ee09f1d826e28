# config.py
"""Typed configuration blobs for the whole system."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from touch_tracking.errors import InvalidConfiguration


# ----------------------- ROI ------------------------
@dataclass(frozen=True)
class Rect:
    """Axis-aligned region of interest in pixel space (max bounds exclusive)."""
    x_min: int
    y_min: int
    x_max: int
    y_max: int

    @property
    def width(self) -> int:
        return self.x_max - self.x_min

    @property
    def height(self) -> int:
        return self.y_max - self.y_min

    def validate(self) -> None:
        if self.x_max <= self.x_min or self.y_max <= self.y_min:
            raise InvalidConfiguration(f"Degenerate ROI {self}")
        if self.x_min < 0 or self.y_min < 0:
            raise InvalidConfiguration(f"ROI {self} has negative bounds")

    def check_fits(self, shape: Tuple[int, ...]) -> None:
        """Raise if the ROI reaches past a frame of the given (rows, cols) shape."""
        rows, cols = shape[:2]
        if self.x_max > cols or self.y_max > rows:
            raise InvalidConfiguration(
                f"ROI {self} exceeds frame size {cols}x{rows}"
            )

    def normalize(self, px: float, py: float) -> Tuple[float, float]:
        """Map a pixel position to [0,1]² with the vertical axis flipped."""
        nx = (px - self.x_min) / self.width
        ny = 1.0 - (py - self.y_min) / self.height
        return nx, ny


# ---------------------- Source ----------------------
@dataclass
class SourceConfig:
    device_index: int = 0
    replay_path: Optional[str] = None   # .npy / .npz depth stack; overrides the device
    replay_loop: bool = False

    def validate(self) -> None:
        if self.device_index < 0:
            raise InvalidConfiguration(f"device_index must be >= 0, got {self.device_index}")


# -------------------- Background --------------------
@dataclass
class BackgroundConfig:
    sample_count: int = 30

    def validate(self) -> None:
        if self.sample_count < 1:
            raise InvalidConfiguration(
                f"sample_count must be >= 1, got {self.sample_count}"
            )


# --------------------- Detector ---------------------
def validate_depth_band(depth_band: Tuple[int, int]) -> None:
    lo, hi = depth_band
    if lo < 0:
        raise InvalidConfiguration(f"Depth band minimum must be >= 0, got {lo}")
    if hi <= lo:
        raise InvalidConfiguration(f"Empty depth band ({lo}, {hi})")


def validate_min_area(min_area: int) -> None:
    if min_area <= 0:
        raise InvalidConfiguration(f"min_area must be positive, got {min_area}")


@dataclass
class DetectorConfig:
    roi: Rect = field(default_factory=lambda: Rect(110, 120, 560, 320))
    depth_band: Tuple[int, int] = (10, 20)   # mm above the background surface
    min_area: int = 50                       # px
    connectivity: int = 8                    # 4 or 8

    def validate(self) -> None:
        self.roi.validate()
        validate_depth_band(self.depth_band)
        validate_min_area(self.min_area)
        if self.connectivity not in (4, 8):
            raise InvalidConfiguration(
                f"connectivity must be 4 or 8, got {self.connectivity}"
            )


# ---------------------- Tracker ---------------------
@dataclass
class TrackerConfig:
    # Kalman smoothing of cursor positions; units are normalized / frame
    smoothing: bool = False
    measurement_noise_std: float = 0.005
    process_noise_std: float = 0.02
    initial_velocity_error_std: float = 0.05

    def validate(self) -> None:
        if self.measurement_noise_std <= 0 or self.process_noise_std <= 0:
            raise InvalidConfiguration("Tracker noise terms must be positive")
        if self.initial_velocity_error_std <= 0:
            raise InvalidConfiguration("initial_velocity_error_std must be positive")

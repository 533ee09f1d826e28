# helpers.py
"""Small utility classes that don’t fit elsewhere."""
from __future__ import annotations

from typing import Tuple

import numpy as np
from filterpy.common import Q_discrete_white_noise
from filterpy.kalman import KalmanFilter

from touch_tracking.config import TrackerConfig


class PositionFilter:
    """
    4-state constant-velocity Kalman filter for one cursor.
    Δt is measured in frames, positions are normalized ROI coordinates.
    """

    def __init__(self, cfg: TrackerConfig, x: float, y: float):
        self.cfg = cfg
        self.kf = KalmanFilter(dim_x=4, dim_z=2)
        self.kf.F = np.array(
            [
                [1, 0, 1, 0],
                [0, 1, 0, 1],
                [0, 0, 1, 0],
                [0, 0, 0, 1],
            ],
            dtype=float,
        )
        self.kf.H = np.array([[1, 0, 0, 0], [0, 1, 0, 0]], dtype=float)

        mvar = cfg.measurement_noise_std**2
        self.kf.R = np.diag([mvar, mvar])
        self._update_Q(1.0)

        # First measurement initializes state
        vel_var = cfg.initial_velocity_error_std**2
        self.kf.P = np.diag([mvar, mvar, vel_var, vel_var])
        self.kf.x = np.array([[x], [y], [0.0], [0.0]])

    def _update_Q(self, dt: float) -> None:
        pvar = self.cfg.process_noise_std**2
        self.kf.Q = Q_discrete_white_noise(
            dim=2, dt=dt, var=pvar, order_by_dim=False, block_size=2
        )

    def update(self, x: float, y: float, dt: float) -> Tuple[float, float]:
        """Predict ``dt`` frames ahead, correct with (x, y), return the clipped estimate."""
        dt = max(float(dt), 1.0)
        self.kf.F[0, 2] = dt
        self.kf.F[1, 3] = dt
        self._update_Q(dt)
        self.kf.predict()
        self.kf.update(np.array([[x], [y]]))
        fx, fy = np.clip(self.kf.x[:2, 0], 0.0, 1.0)
        return float(fx), float(fy)

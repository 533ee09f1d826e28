# live_tuning.py
"""
Hot-reload of detector parameters from a JSON file.

Example ``runtime_params.json``::

    {"roi": [110, 120, 560, 320], "depth_band": [10, 20], "min_area": 50}

Missing keys leave the current value untouched.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from touch_tracking.config import Rect

logger = logging.getLogger(__name__)


class RuntimeParamWatcher:
    """Watch a JSON file and reload its contents when it changes."""

    def __init__(self, path: str | Path = "runtime_params.json") -> None:
        self.path = Path(path).expanduser().resolve()
        self._stamp: Tuple[float, int] = (0.0, -1)  # (mtime, size)
        self.params: Dict[str, Any] = {}

        logger.info("[Runtime] Watching: %s", self.path)
        self._load(initial=True)

    # ------------------------------------------------------------------
    #   Internal helpers
    # ------------------------------------------------------------------
    def _load(self, *, initial: bool = False) -> bool:
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                params = json.load(fp)
            stat = self.path.stat()
        except FileNotFoundError:
            if initial:
                logger.info(
                    "[Runtime] %s not found; live-tuning idle until it is created.", self.path
                )
            else:
                logger.warning("[Runtime] %s was deleted; keeping old params.", self.path)
            return False
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("[Runtime] Could not read %s: %s", self.path, exc)
            return False

        self._stamp = (stat.st_mtime, stat.st_size)
        if not isinstance(params, dict):
            logger.warning("[Runtime] %s must hold a JSON object", self.path)
            return False
        self.params = params
        if not initial:
            logger.info("[Runtime] Reloaded parameters from %s", self.path)
        return True

    # ------------------------------------------------------------------
    #   Public API
    # ------------------------------------------------------------------
    def maybe_reload(self) -> bool:
        """
        If the watched file changed since the last call reload it and
        return **True**, else return **False**.
        """
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return False

        mtime, fsize = self._stamp
        # Coarse filesystem timestamps: any size change or mtime moving counts
        if stat.st_size != fsize or stat.st_mtime != mtime:
            return self._load()
        return False

    def get(self, key: str, default: Any | None = None) -> Any:
        return self.params.get(key, default)

    # Typed accessors; raise ValueError/TypeError on malformed entries
    def roi(self) -> Optional[Rect]:
        raw = self.get("roi")
        if raw is None:
            return None
        x_min, y_min, x_max, y_max = (int(v) for v in raw)
        return Rect(x_min, y_min, x_max, y_max)

    def depth_band(self) -> Optional[Tuple[int, int]]:
        raw = self.get("depth_band")
        if raw is None:
            return None
        lo, hi = (int(v) for v in raw)
        return lo, hi

    def min_area(self) -> Optional[int]:
        raw = self.get("min_area")
        return None if raw is None else int(raw)

# processor.py
"""Glue logic that wires depth source → background → detector → tracker → sink."""
from __future__ import annotations

import logging
import time
from typing import List, Optional

import numpy as np

from touch_tracking.background import BackgroundModel
from touch_tracking.camera import DepthSource
from touch_tracking.common import EventSink, FrameResult
from touch_tracking.config import BackgroundConfig, DetectorConfig, TrackerConfig
from touch_tracking.detector import TouchDetector
from touch_tracking.errors import (
    InvalidConfiguration,
    SensorAcquisitionFailure,
    SourceExhausted,
)
from touch_tracking.live_tuning import RuntimeParamWatcher
from touch_tracking.tracker import CursorTracker

logger = logging.getLogger(__name__)


def log_events(result: FrameResult) -> None:
    """Default sink: one INFO line per frame that produced events."""
    if result.events:
        logger.info(
            "[Events] frame %d: %s",
            result.frame_index,
            " ".join(str(ev) for ev in result.events),
        )


class TouchProcessor:
    """The main high-level orchestrator."""

    def __init__(
        self,
        source: DepthSource,
        background_cfg: BackgroundConfig,
        detector_cfg: DetectorConfig,
        tracker_cfg: TrackerConfig,
        sink: Optional[EventSink] = None,
        watcher: Optional[RuntimeParamWatcher] = None,
    ):
        # Configuration errors surface here, before any frame is read
        background_cfg.validate()
        self.background_cfg = background_cfg
        self.source = source
        self.detector = TouchDetector(detector_cfg)
        self.tracker = CursorTracker(tracker_cfg)
        self.sink = sink or log_events
        self.watcher = watcher

        self.background: Optional[BackgroundModel] = None
        self.frame_index = 0

        # Runtime metrics
        self.frame_count = 0
        self.proc_time_sum = 0.0
        self.fps_timer_start = time.time()
        self.disp_fps = 0.0
        self.disp_proc_ms_avg = 0.0

    # ---------------------------------------------------------------------
    #                         Setup / teardown
    # ---------------------------------------------------------------------
    def setup(self) -> None:
        """Open the source, build the background, then apply any tuning file."""
        if not self.source.open():
            raise SensorAcquisitionFailure("Could not open depth source")
        self.calibrate()
        # After calibration so a tuning ROI is checked against the frame size
        if self.watcher is not None and self.watcher.params:
            self.apply_tuning()
        logger.info("[Processor] Setup complete")

    def cleanup(self) -> None:
        logger.info("[Processor] Cleaning up...")
        self.source.close()
        logger.info("[Processor] Exited. Total frames: %d", self.frame_index)

    def calibrate(self) -> BackgroundModel:
        """
        (Re)build the background from ``sample_count`` fresh frames.
        Keep the surface clear while this runs. Tracked cursors survive.
        """
        n = self.background_cfg.sample_count
        logger.info("[Processor] Capturing %d background frame(s)...", n)
        try:
            frames: List[np.ndarray] = [self.source.read() for _ in range(n)]
        except SourceExhausted as exc:
            raise SensorAcquisitionFailure(f"Source ended during calibration: {exc}") from exc
        background = BackgroundModel.build(frames)
        self.detector.config.roi.check_fits(background.shape)
        self.background = background
        logger.info(
            "[Processor] Background ready (%dx%d, mean %.0f mm)",
            background.shape[1], background.shape[0], float(background.depth.mean()),
        )
        return background

    # ---------------------------------------------------------------------
    #                            Live tuning
    # ---------------------------------------------------------------------
    def apply_tuning(self) -> None:
        """Push watcher values through the detector setters; bad values are skipped."""
        w = self.watcher
        if w is None:
            return
        for name, read, setter in (
            ("roi", w.roi, self.detector.set_roi),
            ("depth_band", w.depth_band, self.detector.set_depth_band),
            ("min_area", w.min_area, self.detector.set_min_area),
        ):
            try:
                value = read()
                if value is None:
                    continue
                if name == "roi" and self.background is not None:
                    value.check_fits(self.background.shape)
                setter(value)
            except (InvalidConfiguration, TypeError, ValueError) as exc:
                logger.warning("[Runtime] Rejected %s: %s", name, exc)

    # ---------------------------------------------------------------------
    #                          Main per-frame step
    # ---------------------------------------------------------------------
    def process_frame(self) -> FrameResult:
        if self.background is None:
            raise RuntimeError("calibrate() must run before process_frame()")

        if self.watcher is not None and self.watcher.maybe_reload():
            self.apply_tuning()

        frame = self.source.read()
        ts = time.time()
        tic = time.perf_counter()

        self.frame_index += 1
        candidates = self.detector.detect(frame, self.background)
        points = [self.detector.normalize(c) for c in candidates]
        events = self.tracker.update(points, self.frame_index)

        result = FrameResult(
            frame_index=self.frame_index,
            t_capture=ts,
            candidates=tuple(candidates),
            points=tuple(points),
            events=tuple(events),
        )
        self.sink(result)

        self._update_stats((time.perf_counter() - tic) * 1000.0)
        return result

    def _update_stats(self, proc_ms: float) -> None:
        self.proc_time_sum += proc_ms
        self.frame_count += 1

        now = time.time()
        if now - self.fps_timer_start >= 1.0:
            self.disp_fps = self.frame_count / (now - self.fps_timer_start)
            self.disp_proc_ms_avg = self.proc_time_sum / self.frame_count
            logger.info(
                "[Processor] %.1f FPS, %.2f ms/frame, %d cursor(s)",
                self.disp_fps, self.disp_proc_ms_avg, len(self.tracker),
            )
            self.frame_count = 0
            self.proc_time_sum = 0.0
            self.fps_timer_start = now

    # ---------------------------------------------------------------------
    #                             Public run()
    # ---------------------------------------------------------------------
    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Calibrate, then process frames until ``max_frames``, the end of a
        recording, or Ctrl-C. Returns the number of processed frames.
        Acquisition failures propagate to the caller.
        """
        processed = 0
        try:
            self.setup()
            while max_frames is None or processed < max_frames:
                self.process_frame()
                processed += 1
        except SourceExhausted:
            logger.info("[Processor] Source exhausted after %d frame(s)", processed)
        except SensorAcquisitionFailure as exc:
            logger.error("[Processor] Acquisition failed: %s", exc)
            raise
        except KeyboardInterrupt:
            logger.info("[Processor] Stopped by user.")
        finally:
            self.cleanup()
        return processed

# main.py
"""
Entry-point for the touch-tracking system.

Point the depth sensor down at a table, start the program with the surface
clear (the first ``--background-frames`` frames become the reference
surface), then use the table as a touchpad. Cursor events are logged; plug
a protocol encoder in as the ``sink`` of ``TouchProcessor`` to send them on.

Live-tuning
-----------
With ``--params runtime_params.json`` the ROI, depth band and minimum area
can be edited while the program runs. See ``live_tuning.py`` for the format.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from touch_tracking.camera import make_source
from touch_tracking.config import (
    BackgroundConfig,
    DetectorConfig,
    Rect,
    SourceConfig,
    TrackerConfig,
)
from touch_tracking.errors import (
    InvalidConfiguration,
    InvalidInput,
    SensorAcquisitionFailure,
)
from touch_tracking.live_tuning import RuntimeParamWatcher
from touch_tracking.processor import TouchProcessor

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="touch-tracking",
        description="Turn an overhead depth sensor into a multi-touch surface.",
    )
    ap.add_argument("--device-index", type=int, default=0, help="OpenNI device index (default 0).")
    ap.add_argument("--replay", metavar="PATH", help="Replay a .npy/.npz depth stack instead of a device.")
    ap.add_argument("--loop", action="store_true", help="Loop the replay file.")
    ap.add_argument(
        "--roi", type=int, nargs=4, metavar=("XMIN", "YMIN", "XMAX", "YMAX"),
        default=[110, 120, 560, 320], help="Region of interest in pixels.",
    )
    ap.add_argument(
        "--depth-band", type=int, nargs=2, metavar=("MIN", "MAX"),
        default=[10, 20], help="Touch band above the surface in mm.",
    )
    ap.add_argument("--min-area", type=int, default=50, help="Minimum blob area in px.")
    ap.add_argument("--connectivity", type=int, choices=(4, 8), default=8)
    ap.add_argument("--background-frames", type=int, default=30, help="Frames averaged into the background.")
    ap.add_argument("--smooth", action="store_true", help="Kalman-smooth cursor positions.")
    ap.add_argument("--params", metavar="JSON", help="Live-tuning file to watch.")
    ap.add_argument("--max-frames", type=int, default=None, help="Stop after this many frames.")
    ap.add_argument("--verbose", action="store_true", help="Verbose logging.")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    # -------------------- Config blobs --------------------
    src_cfg = SourceConfig(
        device_index=args.device_index,
        replay_path=args.replay,
        replay_loop=args.loop,
    )
    bg_cfg = BackgroundConfig(sample_count=args.background_frames)
    det_cfg = DetectorConfig(
        roi=Rect(*args.roi),
        depth_band=tuple(args.depth_band),
        min_area=args.min_area,
        connectivity=args.connectivity,
    )
    trk_cfg = TrackerConfig(smoothing=args.smooth)

    logger.info(
        "Source: %s", f"replay {src_cfg.replay_path}" if src_cfg.replay_path
        else f"OpenNI device {src_cfg.device_index}",
    )
    logger.info(
        "Detector: roi=%s, band=%s mm, min_area=%d px, background=%d frames",
        det_cfg.roi, det_cfg.depth_band, det_cfg.min_area, bg_cfg.sample_count,
    )

    # ------------------------ Run -------------------------
    try:
        src_cfg.validate()
        watcher = RuntimeParamWatcher(args.params) if args.params else None
        processor = TouchProcessor(
            make_source(src_cfg), bg_cfg, det_cfg, trk_cfg, watcher=watcher
        )
        processor.run(max_frames=args.max_frames)
    except InvalidConfiguration as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except SensorAcquisitionFailure as exc:
        logger.error("Depth source failed: %s", exc)
        return 1
    except InvalidInput as exc:
        logger.error("Invalid depth data: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

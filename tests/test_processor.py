import json

import pytest

from touch_tracking.camera import ArrayDepthSource
from touch_tracking.common import EventKind
from touch_tracking.config import BackgroundConfig, DetectorConfig, Rect, TrackerConfig
from touch_tracking.errors import InvalidConfiguration, SensorAcquisitionFailure
from touch_tracking.live_tuning import RuntimeParamWatcher
from touch_tracking.processor import TouchProcessor

from conftest import flat_frame, frame_with_blocks

TOUCH = (45, 45, 10, 1990)  # 10x10 block centred on (50, 50)


def make_processor(frames, sample_count=30, watcher=None, roi=Rect(0, 0, 100, 100)):
    results = []
    source = ArrayDepthSource([flat_frame() for _ in range(sample_count)] + frames)
    proc = TouchProcessor(
        source,
        BackgroundConfig(sample_count=sample_count),
        DetectorConfig(roi=roi, depth_band=(10, 20), min_area=50),
        TrackerConfig(),
        sink=results.append,
        watcher=watcher,
    )
    return proc, results


def test_touch_lifecycle_scenario():
    frames = [
        frame_with_blocks([TOUCH]),
        frame_with_blocks([TOUCH]),
        flat_frame(),
        flat_frame(),
    ]
    proc, results = make_processor(frames)
    assert proc.run() == 4
    assert [r.frame_index for r in results] == [1, 2, 3, 4]

    add, = results[0].events
    assert add.kind is EventKind.ADD
    assert add.x == pytest.approx(0.5, abs=0.01)
    assert add.y == pytest.approx(0.5, abs=0.01)

    upd, = results[1].events
    assert upd.kind is EventKind.UPDATE
    assert upd.session_id == add.session_id
    assert (upd.x, upd.y) == (add.x, add.y)

    assert results[2].events == ()
    rem, = results[3].events
    assert rem.kind is EventKind.REMOVE
    assert rem.session_id == add.session_id
    assert proc.tracker.cursors() == []


def test_stopped_cursor_is_still_queryable():
    proc, _ = make_processor([frame_with_blocks([TOUCH]), flat_frame()])
    proc.setup()
    sid = proc.process_frame().events[0].session_id
    proc.process_frame()
    assert proc.tracker.get(sid) is not None


def test_two_blobs_over_many_frames():
    blobs = [(10, 10, 10, 1985), (70, 60, 10, 1985)]
    proc, results = make_processor([frame_with_blocks(blobs) for _ in range(12)])
    proc.run()
    first_ids = sorted(ev.session_id for ev in results[0].events)
    assert len(first_ids) == 2
    for r in results[1:]:
        assert all(ev.kind is EventKind.UPDATE for ev in r.events)
        assert sorted(ev.session_id for ev in r.events) == first_ids
    for r in results:
        for x, y in r.points:
            assert 0.0 <= x <= 1.0 and 0.0 <= y <= 1.0


def test_max_frames_stops_loop():
    proc, results = make_processor([flat_frame()] * 10, sample_count=1)
    assert proc.run(max_frames=3) == 3
    assert len(results) == 3


def test_bad_config_fails_before_reading():
    source = ArrayDepthSource([])
    with pytest.raises(InvalidConfiguration):
        TouchProcessor(
            source, BackgroundConfig(), DetectorConfig(roi=Rect(10, 0, 5, 10)), TrackerConfig()
        )
    with pytest.raises(InvalidConfiguration):
        TouchProcessor(source, BackgroundConfig(sample_count=0), DetectorConfig(), TrackerConfig())


def test_roi_outside_frame_fails_at_calibration():
    proc, _ = make_processor([], sample_count=2, roi=Rect(0, 0, 500, 100))
    with pytest.raises(InvalidConfiguration):
        proc.run()


def test_source_running_dry_during_calibration():
    source = ArrayDepthSource([flat_frame()] * 3)
    proc = TouchProcessor(source, BackgroundConfig(sample_count=5), DetectorConfig(
        roi=Rect(0, 0, 100, 100)), TrackerConfig())
    with pytest.raises(SensorAcquisitionFailure):
        proc.run()


class _BrokenSource(ArrayDepthSource):
    def read(self):
        if self.position >= len(self.frames):
            raise SensorAcquisitionFailure("cable unplugged")
        return super().read()


def test_acquisition_failure_propagates_and_releases():
    closed = []
    source = _BrokenSource([flat_frame()] * 3)
    source.close = lambda: closed.append(True)
    proc = TouchProcessor(source, BackgroundConfig(sample_count=1), DetectorConfig(
        roi=Rect(0, 0, 100, 100)), TrackerConfig(), sink=lambda r: None)
    with pytest.raises(SensorAcquisitionFailure):
        proc.run()
    assert proc.frame_index == 2
    assert closed == [True]


def test_recalibration_keeps_cursors():
    # The table "sinks" by 100 mm after the first calibration
    frames = [frame_with_blocks([TOUCH])] + [flat_frame(2100)] * 3 + [
        frame_with_blocks([TOUCH], base=2100)
    ]
    proc, results = make_processor(frames, sample_count=3)
    proc.setup()
    sid = proc.process_frame().events[0].session_id
    proc.calibrate()
    assert int(proc.background.depth[0, 0]) == 2100
    # 2100 - 1990 = 110 mm: far above the new surface, no touch
    r = proc.process_frame()
    assert r.candidates == ()
    assert proc.tracker.get(sid) is not None


def test_process_before_calibration_is_an_error():
    proc, _ = make_processor([flat_frame()])
    with pytest.raises(RuntimeError):
        proc.process_frame()


def test_live_tuning_applies_and_rejects(tmp_path):
    params = tmp_path / "runtime_params.json"
    params.write_text(json.dumps({"min_area": 200}))
    watcher = RuntimeParamWatcher(params)

    frames = [frame_with_blocks([TOUCH])] * 2
    proc, results = make_processor(frames, sample_count=1, watcher=watcher)
    proc.setup()
    assert proc.detector.config.min_area == 200
    assert proc.process_frame().candidates == ()

    params.write_text(json.dumps({"min_area": 50, "depth_band": [30, 10], "roi": [0, 0, 999, 50]}))
    r = proc.process_frame()
    assert proc.detector.config.min_area == 50
    assert proc.detector.config.depth_band == (10, 20)
    assert proc.detector.config.roi == Rect(0, 0, 100, 100)
    assert len(r.candidates) == 1


def test_oversized_tuning_roi_is_rejected_at_setup(tmp_path):
    params = tmp_path / "runtime_params.json"
    params.write_text(json.dumps({"roi": [0, 0, 999, 50]}))
    watcher = RuntimeParamWatcher(params)

    frames = [frame_with_blocks([TOUCH])] * 3
    proc, results = make_processor(frames, sample_count=1, watcher=watcher)
    assert proc.run() == 3
    assert proc.detector.config.roi == Rect(0, 0, 100, 100)
    assert results[0].events[0].kind is EventKind.ADD

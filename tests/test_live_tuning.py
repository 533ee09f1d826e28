import json

import pytest

from touch_tracking.config import Rect
from touch_tracking.live_tuning import RuntimeParamWatcher


def test_missing_file_is_idle(tmp_path):
    w = RuntimeParamWatcher(tmp_path / "params.json")
    assert w.params == {}
    assert not w.maybe_reload()
    assert w.roi() is None and w.depth_band() is None and w.min_area() is None


def test_initial_load_and_typed_accessors(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"roi": [1, 2, 30, 40], "depth_band": [5, 25], "min_area": "12"}))
    w = RuntimeParamWatcher(path)
    assert w.roi() == Rect(1, 2, 30, 40)
    assert w.depth_band() == (5, 25)
    assert w.min_area() == 12
    assert not w.maybe_reload()


def test_reload_on_change(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"min_area": 10}))
    w = RuntimeParamWatcher(path)
    path.write_text(json.dumps({"min_area": 100}))
    assert w.maybe_reload()
    assert w.min_area() == 100


def test_broken_json_keeps_old_params(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"min_area": 10}))
    w = RuntimeParamWatcher(path)
    path.write_text("{not json")
    assert not w.maybe_reload()
    assert w.min_area() == 10


def test_created_later(tmp_path):
    path = tmp_path / "params.json"
    w = RuntimeParamWatcher(path)
    path.write_text(json.dumps({"depth_band": [1, 9]}))
    assert w.maybe_reload()
    assert w.depth_band() == (1, 9)


def test_malformed_roi_raises(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"roi": [1, 2, 3]}))
    with pytest.raises(ValueError):
        RuntimeParamWatcher(path).roi()

import math

import pytest

import traces
from make_composite_trace import main as composite_main
from make_composite_trace import make_composite_trace
from profiling.features import FEATURE_NAMES, NUM_FEATURES, compute_window_features
from profiling.report import format_profile, make_windows, profile_trace
from traces import Trace


def _feature(vec, name):
  return float(vec[FEATURE_NAMES.index(name)])


class TestWindowFeatures:
  """Access-pattern features of a page window."""

  def test_sequential_scan(self):
    vec = compute_window_features(list(range(10)))
    assert vec.shape == (NUM_FEATURES,)
    assert _feature(vec, "unique_ratio") == pytest.approx(1.0)
    assert _feature(vec, "sequential_frac") == pytest.approx(1.0)
    assert _feature(vec, "mean_abs_stride") == pytest.approx(1.0)
    assert _feature(vec, "reuse_mean") == pytest.approx(10.0)
    assert _feature(vec, "entropy") == pytest.approx(math.log2(10), rel=1e-5)

  def test_single_hot_page(self):
    vec = compute_window_features([7] * 10)
    assert _feature(vec, "unique_ratio") == pytest.approx(0.1)
    assert _feature(vec, "entropy") == pytest.approx(0.0)
    assert _feature(vec, "reuse_small_frac") == pytest.approx(1.0)
    assert _feature(vec, "max_run_len") == pytest.approx(10.0)

  def test_empty_window(self):
    assert compute_window_features([]).tolist() == [0.0] * NUM_FEATURES


class TestTraceProfile:
  """Per-process profile over windows."""

  def test_make_windows(self):
    assert make_windows(list(range(10)), 4, 2) == [[0, 1, 2, 3], [2, 3, 4, 5], [4, 5, 6, 7], [6, 7, 8, 9]]
    assert make_windows([1, 2], 4, 2) == [[1, 2]]
    assert make_windows([], 4, 2) == []

  def test_profile_separates_processes(self):
    records = traces.make_multiprocess_trace(["sequential", "hotset"], length_per_process=128, seed=2)
    profile = profile_trace(Trace.from_records(records, 4096), num_processes=3, window_size=32)
    assert profile[0]["sequential_frac"] == pytest.approx(1.0)
    assert profile[1]["sequential_frac"] < 0.5
    assert profile[1]["distinct_pages"] < profile[0]["distinct_pages"]
    assert profile[2]["accesses"] == 0.0
    assert len(format_profile(profile).splitlines()) == 4


class TestCompositeTrace:
  """Composite trace writer."""

  def test_phases_cover_all_processes(self):
    records = make_composite_trace(length_per_phase=10, seed=3)
    assert len(records) == 3 * 4 * 10
    assert {pid for pid, _ in records} == {0, 1, 2, 3}
    assert make_composite_trace(length_per_phase=10, seed=3) == records

  def test_main_writes_loadable_file(self, tmp_path, capsys):
    out = tmp_path / "composite.txt"
    composite_main([str(out), "--length", "20"])
    assert "240 accesses" in capsys.readouterr().out
    assert len(traces.load_trace(str(out), 4096, num_processes=4)) == 240

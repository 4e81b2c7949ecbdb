from __future__ import annotations

from typing import List, Sequence

import numpy as np

FEATURE_NAMES: List[str] = [
  "unique_ratio",
  "entropy",
  "sequential_frac",
  "mean_abs_stride",
  "reuse_mean",
  "reuse_small_frac",
  "max_run_len",
]
NUM_FEATURES = len(FEATURE_NAMES)

SMALL_REUSE = 10


def compute_window_features(window: Sequence[int]) -> np.ndarray:
  """
  Computes a feature vector for a window of page numbers.

  Features:
    0: unique_ratio      = unique_pages / window_size
    1: entropy           = entropy of the page distribution (bits)
    2: sequential_frac   = fraction of consecutive diffs == +1
    3: mean_abs_stride   = mean |diff| between consecutive pages
    4: reuse_mean        = mean reuse distance (window_size if none)
    5: reuse_small_frac  = fraction of reuse distances <= SMALL_REUSE
    6: max_run_len       = longest run of identical page numbers
  """
  n = len(window)
  if n == 0:
    return np.zeros(NUM_FEATURES, dtype=np.float32)

  # Page numbers are unsigned; diffs must be allowed to go negative.
  vals = np.asarray(window, dtype=np.uint64).astype(np.float64)

  unique_vals, counts = np.unique(vals, return_counts=True)
  unique_ratio = len(unique_vals) / float(n)
  p = counts.astype(np.float64) / float(n)
  entropy = float(-(p * np.log2(p)).sum())

  if n > 1:
    diffs = np.diff(vals)
    sequential_frac = float(np.mean(diffs == 1))
    mean_abs_stride = float(np.mean(np.abs(diffs)))
  else:
    sequential_frac = 0.0
    mean_abs_stride = 0.0

  last_pos: dict[float, int] = {}
  reuse_dists: list[int] = []
  for i, v in enumerate(vals.tolist()):
    if v in last_pos:
      reuse_dists.append(i - last_pos[v])
    last_pos[v] = i

  if reuse_dists:
    reuse_arr = np.array(reuse_dists, dtype=np.int64)
    reuse_mean = float(np.mean(reuse_arr))
    reuse_small_frac = float(np.mean(reuse_arr <= SMALL_REUSE))
  else:
    reuse_mean = float(n)
    reuse_small_frac = 0.0

  max_run_len = 1
  cur_run = 1
  for i in range(1, n):
    if vals[i] == vals[i - 1]:
      cur_run += 1
      max_run_len = max(max_run_len, cur_run)
    else:
      cur_run = 1

  return np.array([
    unique_ratio,
    entropy,
    sequential_frac,
    mean_abs_stride,
    reuse_mean,
    reuse_small_frac,
    float(max_run_len),
  ], dtype=np.float32)

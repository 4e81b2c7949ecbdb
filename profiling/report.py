from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from profiling.features import FEATURE_NAMES, NUM_FEATURES, compute_window_features
from traces import Trace

WINDOW_SIZE = 64
STRIDE = 32


def make_windows(
  pages: Sequence[int],
  window_size: int,
  stride: int,
) -> List[Sequence[int]]:
  """
  Slice a page stream into overlapping windows.
  A stream shorter than one window yields itself as the only window.
  """
  n = len(pages)
  if n == 0:
    return []
  if n <= window_size:
    return [pages]
  windows: List[Sequence[int]] = []
  i = 0
  while i + window_size <= n:
    windows.append(pages[i : i + window_size])
    i += stride
  return windows


def profile_pages(
  pages: Sequence[int],
  window_size: int = WINDOW_SIZE,
  stride: int = STRIDE,
) -> np.ndarray:
  """
  Mean feature vector over all windows of one page stream.
  """
  windows = make_windows(pages, window_size, stride)
  if not windows:
    return np.zeros(NUM_FEATURES, dtype=np.float32)
  X = np.stack([compute_window_features(w) for w in windows], axis=0)
  return X.mean(axis=0)


def profile_trace(
  trace: Trace,
  num_processes: int,
  window_size: int = WINDOW_SIZE,
) -> Dict[int, Dict[str, float]]:
  """
  Per-process access-pattern profile, keyed by process id.
  """
  stride = max(1, window_size // 2)
  profile: Dict[int, Dict[str, float]] = {}
  for pid in range(num_processes):
    pages = trace.pages_for(pid).tolist()
    feats = profile_pages(pages, window_size, stride)
    row = {"accesses": float(len(pages)), "distinct_pages": float(len(set(pages)))}
    row.update({name: float(v) for name, v in zip(FEATURE_NAMES, feats)})
    profile[pid] = row
  return profile


def format_profile(profile: Dict[int, Dict[str, float]]) -> str:
  columns = ["accesses", "distinct_pages"] + FEATURE_NAMES
  lines = [f"{'pid':<5}" + "".join(f"{c:>18}" for c in columns)]
  for pid in sorted(profile):
    row = profile[pid]
    lines.append(f"{pid:<5}" + "".join(f"{row[c]:>18.3f}" for c in columns))
  return "\n".join(lines)

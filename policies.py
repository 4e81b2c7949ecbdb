from __future__ import annotations

import random
from collections import OrderedDict
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Type

if TYPE_CHECKING:
  from traces import Trace

Occupant = Tuple[int, int]  # (process_id, page_number)
Frames = List[Optional[Occupant]]


class EvictionPolicy:
  """
  Chooses a victim frame from a candidate set when no free frame exists.

  Candidate sets are identified by a dense group id (a single group under
  global allocation, one group per process under local allocation).
  Per-group state is built by reset() once per run.
  """

  name: str = "base"

  def reset(self, num_groups: int) -> None:
    self.num_groups = num_groups

  def on_fill(self, group: int, frame_idx: int) -> None:
    """
    A frame in `group` just received a new occupant.
    """

  def on_hit(self, group: int, frame_idx: int) -> None:
    """
    The occupant of a frame in `group` was referenced again.
    """

  def select_victim(
    self,
    group: int,
    candidates: range,
    frames: Frames,
    trace: "Trace",
    current_index: int,
  ) -> int:
    raise NotImplementedError


# FIFO

class FifoPolicy(EvictionPolicy):
  """
  Reclaim frames in the order they were first filled.

  Frames fill in increasing index order and are never freed, so a cursor
  that walks the candidate set is enough. Hits do not move it.
  """

  name = "fifo"

  def reset(self, num_groups: int) -> None:
    super().reset(num_groups)
    self.cursors: List[int] = [0] * num_groups

  def select_victim(self, group, candidates, frames, trace, current_index) -> int:
    offset = self.cursors[group]
    self.cursors[group] = (offset + 1) % len(candidates)
    return candidates[offset]


# LRU

class LruPolicy(EvictionPolicy):
  """
  Evict the frame referenced longest ago; fills and hits both count.
  """

  name = "lru"

  def reset(self, num_groups: int) -> None:
    super().reset(num_groups)
    self.recency: List["OrderedDict[int, None]"] = [OrderedDict() for _ in range(num_groups)]

  def _move_to_tail(self, group: int, frame_idx: int) -> None:
    order = self.recency[group]
    order[frame_idx] = None
    order.move_to_end(frame_idx)

  def on_fill(self, group: int, frame_idx: int) -> None:
    self._move_to_tail(group, frame_idx)

  def on_hit(self, group: int, frame_idx: int) -> None:
    self._move_to_tail(group, frame_idx)

  def select_victim(self, group, candidates, frames, trace, current_index) -> int:
    order = self.recency[group]
    if not order:
      raise RuntimeError("LRU eviction requested on an empty candidate set")
    return next(iter(order))


# Optimal

class OptimalPolicy(EvictionPolicy):
  """
  Evict the frame whose occupant is referenced farthest in the future.

  Frames are scanned in increasing index order. The first occupant that
  is never referenced again wins outright, so ties among such frames go
  to the lowest frame index.
  """

  name = "optimal"

  def select_victim(self, group, candidates, frames, trace, current_index) -> int:
    victim_idx: Optional[int] = None
    farthest = -1

    for idx in candidates:
      pid, page = frames[idx]
      nxt = trace.next_reference(pid, page, current_index)
      if nxt is None:
        return idx
      if nxt > farthest:
        farthest = nxt
        victim_idx = idx

    if victim_idx is None:
      raise RuntimeError("optimal eviction requested on an empty candidate set")
    return victim_idx


# Random

class RandomPolicy(EvictionPolicy):
  """
  Evict a uniformly chosen frame of the candidate set.
  The generator is seeded once, when the policy is created.
  """

  name = "random"

  def __init__(self, seed: Optional[int] = None):
    self.seed = seed
    self.rng = random.Random(seed)

  def select_victim(self, group, candidates, frames, trace, current_index) -> int:
    return candidates[self.rng.randrange(len(candidates))]


_POLICY_REGISTRY: Dict[str, Type[EvictionPolicy]] = {
  "fifo": FifoPolicy,
  "lru": LruPolicy,
  "optimal": OptimalPolicy,
  "random": RandomPolicy,
}


def available_policies() -> List[str]:
  return list(_POLICY_REGISTRY)


def get_policy(name: str, seed: Optional[int] = None) -> EvictionPolicy:
  """
  Build a fresh policy instance; `seed` only matters for "random".
  """
  key = name.lower()
  if key not in _POLICY_REGISTRY:
    raise ValueError(
      f"Unknown policy '{name}'. Available: {list(_POLICY_REGISTRY)}"
    )
  if key == "random":
    return RandomPolicy(seed)
  return _POLICY_REGISTRY[key]()

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

from policies import EvictionPolicy, Frames, Occupant

if TYPE_CHECKING:
  from traces import Trace


class FramePool:
  """
  Physical frames and who owns them.

  Under "global" topology every process allocates from and evicts within
  the whole pool. Under "local" topology the pool is cut into
  `num_processes` equal partitions (remainder frames stay unused) and
  process p only ever touches partition p.
  """

  def __init__(
    self,
    total_frames: int,
    num_processes: int,
    policy: EvictionPolicy,
    topology: str = "global",
  ):
    self.total_frames = total_frames
    self.num_processes = num_processes
    self.policy = policy
    self.topology = topology
    self.frames: Frames = [None] * total_frames

    if topology == "global":
      self.partitions: List[range] = [range(0, total_frames)]
    elif topology == "local":
      share = total_frames // num_processes
      self.partitions = [range(p * share, (p + 1) * share) for p in range(num_processes)]
    else:
      raise ValueError(f"Unknown topology '{topology}'")

    self.policy.reset(len(self.partitions))

  # Candidate sets

  def group_of(self, process_id: int) -> int:
    return 0 if self.topology == "global" else process_id

  def candidate_set(self, process_id: int) -> range:
    return self.partitions[self.group_of(process_id)]

  def occupant(self, frame_idx: int) -> Optional[Occupant]:
    return self.frames[frame_idx]

  def occupied_count(self, process_id: int) -> int:
    return sum(1 for idx in self.candidate_set(process_id) if self.frames[idx] is not None)

  # Allocation / eviction

  def allocate(self, process_id: int, page: int) -> Optional[int]:
    """
    Place (process_id, page) in the lowest free frame of its candidate set.
    Returns None when the candidate set is full.
    """
    group = self.group_of(process_id)
    for idx in self.partitions[group]:
      if self.frames[idx] is None:
        self.frames[idx] = (process_id, page)
        self.policy.on_fill(group, idx)
        return idx
    return None

  def evict(
    self,
    process_id: int,
    page: int,
    trace: "Trace",
    current_index: int,
  ) -> Tuple[int, int, int]:
    """
    Reclaim a victim frame for (process_id, page).
    Returns (evicted_pid, evicted_page, frame_idx).
    """
    group = self.group_of(process_id)
    candidates = self.partitions[group]
    victim_idx = self.policy.select_victim(group, candidates, self.frames, trace, current_index)

    if victim_idx not in candidates:
      raise RuntimeError(
        f"Policy {self.policy.name} returned frame {victim_idx} outside "
        f"candidate set [{candidates.start}, {candidates.stop})"
      )
    old = self.frames[victim_idx]
    if old is None:
      raise RuntimeError(f"Policy {self.policy.name} chose free frame {victim_idx}")

    self.frames[victim_idx] = (process_id, page)
    self.policy.on_fill(group, victim_idx)
    return old[0], old[1], victim_idx

  def touch(self, process_id: int, frame_idx: int) -> None:
    self.policy.on_hit(self.group_of(process_id), frame_idx)

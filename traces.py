from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

MAX_ADDRESS = (1 << 64) - 1

Record = Tuple[int, int]  # (process_id, virtual_address)


class TraceFormatError(ValueError):
  """
  Raised when a trace line cannot be parsed as `process_id,virtual_address`.
  """

  def __init__(self, message: str, line_no: Optional[int] = None):
    if line_no is not None:
      message = f"line {line_no}: {message}"
    super().__init__(message)
    self.line_no = line_no


# Trace container

@dataclass(frozen=True, eq=False)
class Trace:
  """
  Immutable sequence of (process_id, page_number) accesses.
  """

  pids: np.ndarray
  pages: np.ndarray
  _positions: Dict[Tuple[int, int], np.ndarray] = field(
    default_factory=dict, repr=False, compare=False
  )

  def __post_init__(self):
    if self.pids.shape != self.pages.shape:
      raise ValueError("pids and pages must have the same length")
    self.pids.setflags(write=False)
    self.pages.setflags(write=False)

  @classmethod
  def from_pairs(cls, pairs: Iterable[Tuple[int, int]]) -> "Trace":
    pairs = list(pairs)
    pids = np.array([p for p, _ in pairs], dtype=np.int64)
    pages = np.array([pg for _, pg in pairs], dtype=np.uint64)
    return cls(pids=pids, pages=pages)

  @classmethod
  def from_records(cls, records: Iterable[Record], page_size: int) -> "Trace":
    """
    Build a trace from raw (pid, virtual_address) records.
    page_size must be a power of two.
    """
    records = list(records)
    shift = np.uint64(page_size.bit_length() - 1)
    pids = np.array([r[0] for r in records], dtype=np.int64)
    addrs = np.array([r[1] for r in records], dtype=np.uint64)
    return cls(pids=pids, pages=np.right_shift(addrs, shift))

  def __len__(self) -> int:
    return int(self.pids.shape[0])

  def __getitem__(self, idx: int) -> Tuple[int, int]:
    return int(self.pids[idx]), int(self.pages[idx])

  def __iter__(self) -> Iterator[Tuple[int, int]]:
    for pid, page in zip(self.pids.tolist(), self.pages.tolist()):
      yield pid, page

  def process_ids(self) -> List[int]:
    return sorted(set(self.pids.tolist()))

  def pages_for(self, pid: int) -> np.ndarray:
    """
    The page numbers accessed by one process, in trace order.
    """
    return self.pages[self.pids == pid]

  def next_reference(self, pid: int, page: int, after: int) -> Optional[int]:
    """
    Index of the first access to (pid, page) strictly after `after`,
    or None if the pair is never referenced again.
    """
    if not self._positions:
      self._index_positions()
    positions = self._positions.get((pid, page))
    if positions is None:
      return None
    i = int(np.searchsorted(positions, after, side="right"))
    if i >= positions.shape[0]:
      return None
    return int(positions[i])

  def _index_positions(self) -> None:
    # Group indices by (pid, page); each group is then sorted by position.
    order = np.lexsort((self.pages, self.pids))
    sorted_pids = self.pids[order]
    sorted_pages = self.pages[order]
    if order.shape[0] == 0:
      return
    change = np.flatnonzero(
      (np.diff(sorted_pids) != 0) | (np.diff(sorted_pages) != 0)
    ) + 1
    starts = np.concatenate(([0], change))
    ends = np.concatenate((change, [order.shape[0]]))
    for s, e in zip(starts.tolist(), ends.tolist()):
      key = (int(sorted_pids[s]), int(sorted_pages[s]))
      self._positions[key] = np.sort(order[s:e])


# Trace file I/O

def parse_line(line: str, line_no: Optional[int] = None) -> Record:
  parts = line.split(",")
  if len(parts) != 2:
    raise TraceFormatError(f"expected 'pid,address', got {line!r}", line_no)
  try:
    pid = int(parts[0].strip())
    address = int(parts[1].strip())
  except ValueError:
    raise TraceFormatError(f"non-integer field in {line!r}", line_no) from None
  if pid < 0:
    raise TraceFormatError(f"negative process id {pid}", line_no)
  if not 0 <= address <= MAX_ADDRESS:
    raise TraceFormatError(f"address {address} out of range", line_no)
  return pid, address


def read_records(path: str, num_processes: Optional[int] = None) -> List[Record]:
  records: List[Record] = []
  with open(path, "r") as f:
    for line_no, line in enumerate(f, 1):
      if not line.strip():
        continue
      pid, address = parse_line(line.strip(), line_no)
      if num_processes is not None and pid >= num_processes:
        raise TraceFormatError(
          f"process id {pid} outside [0, {num_processes})", line_no
        )
      records.append((pid, address))
  return records


def load_trace(path: str, page_size: int, num_processes: Optional[int] = None) -> Trace:
  """
  Read a `pid,address` trace file and convert addresses to page numbers.
  Any malformed line aborts the whole load.
  """
  return Trace.from_records(read_records(path, num_processes), page_size)


def write_trace(path: str, records: Iterable[Record]) -> int:
  count = 0
  with open(path, "w") as f:
    for pid, address in records:
      f.write(f"{pid},{address}\n")
      count += 1
  return count


# ----- Per-process page generators -----

def _sequential_pages(length: int, start_page: int = 0) -> List[int]:
  """
  Single forward scan with no repeated pages.
  """
  return list(range(start_page, start_page + length))


def _hotset_pages(
  length: int,
  num_pages_hot: int = 8,
  noise_prob: float = 0.0,
  num_noise_pages: int = 64,
  rng: Optional[random.Random] = None,
) -> List[int]:
  """
  Repeated accesses within a small hot set, with optional cold noise.
  """
  rng = rng or random.Random()
  hot = list(range(num_pages_hot))
  cold = list(range(num_pages_hot, num_pages_hot + num_noise_pages))
  pages: List[int] = []
  for _ in range(length):
    if noise_prob > 0.0 and rng.random() < noise_prob:
      pages.append(rng.choice(cold))
    else:
      pages.append(rng.choice(hot))
  return pages


def _loop_pages(
  length: int,
  num_pages: int = 8,
  jitter_prob: float = 0.05,
  rng: Optional[random.Random] = None,
) -> List[int]:
  """
  Cyclic walk over a working set, with occasional jumps.
  """
  rng = rng or random.Random()
  pages: List[int] = []
  idx = 0
  for _ in range(length):
    if rng.random() < jitter_prob:
      idx = rng.randrange(num_pages)
    pages.append(idx)
    idx = (idx + 1) % num_pages
  return pages


def _random_pages(
  length: int,
  num_pages: int = 256,
  rng: Optional[random.Random] = None,
) -> List[int]:
  """
  Uniform random accesses with no locality.
  """
  rng = rng or random.Random()
  return [rng.randrange(num_pages) for _ in range(length)]


_PAGE_GENERATORS = {
  "sequential": lambda length, rng: _sequential_pages(length),
  "hotset": lambda length, rng: _hotset_pages(length, noise_prob=0.05, rng=rng),
  "loop": lambda length, rng: _loop_pages(length, num_pages=12, rng=rng),
  "random": lambda length, rng: _random_pages(length, rng=rng),
}


def make_multiprocess_trace(
  patterns: List[str],
  length_per_process: int = 500,
  page_size: int = 4096,
  interleave: str = "round_robin",
  seed: Optional[int] = None,
) -> List[Record]:
  """
  Build (pid, address) records for one process per entry in `patterns`.

  Each process walks its own page stream; streams are merged either
  round-robin or by picking a random runnable process at every step.
  Addresses land at a random offset inside each page.
  """
  rng = random.Random(seed)
  streams: List[List[int]] = []
  for name in patterns:
    if name not in _PAGE_GENERATORS:
      raise ValueError(
        f"Unknown pattern '{name}'. Available: {sorted(_PAGE_GENERATORS)}"
      )
    streams.append(_PAGE_GENERATORS[name](length_per_process, rng))

  cursors = [0] * len(streams)
  records: List[Record] = []

  def emit(pid: int) -> None:
    page = streams[pid][cursors[pid]]
    cursors[pid] += 1
    records.append((pid, page * page_size + rng.randrange(page_size)))

  if interleave == "round_robin":
    for _ in range(length_per_process):
      for pid in range(len(streams)):
        emit(pid)
  elif interleave == "random":
    live = [pid for pid, s in enumerate(streams) if s]
    while live:
      pid = rng.choice(live)
      emit(pid)
      if cursors[pid] == len(streams[pid]):
        live.remove(pid)
  else:
    raise ValueError(f"Unknown interleave mode '{interleave}'")

  return records


# ----- Predefined sample traces -----

_PREDEFINED_TRACES = {
  "uniform_hotset": dict(patterns=["hotset"] * 4, interleave="round_robin", seed=11),
  "uniform_loop": dict(patterns=["loop"] * 4, interleave="round_robin", seed=12),
  "mixed": dict(
    patterns=["sequential", "hotset", "loop", "random"],
    interleave="random",
    seed=13,
  ),
  "scan_vs_hot": dict(
    patterns=["sequential", "hotset", "sequential", "hotset"],
    interleave="round_robin",
    seed=14,
  ),
}


def list_trace_names() -> List[str]:
  """
  Return a list of available predefined trace names.
  """
  return sorted(_PREDEFINED_TRACES.keys())


def get_trace(name: str, length_per_process: int = 500, page_size: int = 4096) -> List[Record]:
  """
  Return the (pid, address) records of a predefined trace.
  Predefined traces are seeded, so repeated calls return the same records.
  """
  key = name.lower()
  if key not in _PREDEFINED_TRACES:
    raise ValueError(
      f"Unknown trace '{name}'. Available: {list(_PREDEFINED_TRACES.keys())}"
    )
  return make_multiprocess_trace(
    length_per_process=length_per_process,
    page_size=page_size,
    **_PREDEFINED_TRACES[key],
  )

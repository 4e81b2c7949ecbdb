from __future__ import annotations

import os
import sys
import argparse
from dataclasses import dataclass
from typing import List, Optional, Sequence

import policies
import traces
from config import TOPOLOGIES, ConfigError, SimulationConfig
from frame_pool import FramePool
from page_table import PageTable
from profiling.report import format_profile, profile_trace
from traces import Trace, TraceFormatError


# Data structures

@dataclass
class SimulationResult:
  policy_name: str
  topology: str
  num_frames: int
  num_references: int
  num_hits: int
  per_process_faults: List[int]

  @property
  def global_faults(self) -> int:
    return sum(self.per_process_faults)

  def fault_rate(self) -> float:
    return self.global_faults / self.num_references if self.num_references else 0.0

  def hit_rate(self) -> float:
    return self.num_hits / self.num_references if self.num_references else 0.0


# Simulator core

class Simulator:
  """
  Replays a multi-process trace through one frame pool and one page table
  per process, counting faults.
  """

  def __init__(self, config: SimulationConfig, verbose: bool = False):
    self.config = config.validate()
    self.verbose = verbose

    self.policy = policies.get_policy(config.policy, seed=config.seed)
    self.pool = FramePool(
      total_frames=config.total_frames,
      num_processes=config.num_processes,
      policy=self.policy,
      topology=config.topology,
    )
    self.page_tables: List[PageTable] = [PageTable(pid) for pid in range(config.num_processes)]

    self.trace: Optional[Trace] = None
    self.num_references: int = 0
    self.num_hits: int = 0

  @property
  def global_faults(self) -> int:
    return sum(pt.fault_count for pt in self.page_tables)

  # Internal helpers

  def _handle_fault(self, pid: int, page: int, index: int) -> None:
    page_table = self.page_tables[pid]
    page_table.record_fault()

    frame_idx = self.pool.allocate(pid, page)
    if frame_idx is not None:
      page_table.insert(page, frame_idx)
      if self.verbose:
        print(f"[fault] #{index} pid={pid} page={page} -> free frame {frame_idx}")
      return

    old_pid, old_page, frame_idx = self.pool.evict(pid, page, self.trace, index)
    self.page_tables[old_pid].remove(old_page)
    page_table.insert(page, frame_idx)
    if self.verbose:
      print(f"[fault] #{index} pid={pid} page={page} -> frame {frame_idx} "
            f"(evicted pid={old_pid} page={old_page})")

  # Public API

  def access(self, index: int) -> bool:
    """
    Replay trace entry `index`. Returns True on a hit.
    """
    if self.trace is None:
      raise RuntimeError("no trace loaded; call run() or load() first")
    pid, page = self.trace[index]
    if not 0 <= pid < len(self.page_tables):
      raise TraceFormatError(f"process id {pid} outside [0, {len(self.page_tables)})")
    self.num_references += 1

    frame_idx = self.page_tables[pid].lookup(page)
    if frame_idx is not None:
      self.num_hits += 1
      self.pool.touch(pid, frame_idx)
      return True

    self._handle_fault(pid, page, index)
    return False

  def load(self, trace: Trace) -> None:
    self.trace = trace

  def run(self, trace: Trace, check: bool = False) -> SimulationResult:
    self.load(trace)
    if self.verbose:
      print(f"[trace] {len(trace)} accesses, policy={self.policy.name}, "
            f"topology={self.config.topology}, frames={self.config.total_frames}")

    for index in range(len(trace)):
      self.access(index)
      if check:
        self.check_consistency()

    return self.result()

  def result(self) -> SimulationResult:
    return SimulationResult(
      policy_name=self.policy.name,
      topology=self.config.topology,
      num_frames=self.config.total_frames,
      num_references=self.num_references,
      num_hits=self.num_hits,
      per_process_faults=[pt.fault_count for pt in self.page_tables],
    )

  def check_consistency(self) -> None:
    """
    Raise RuntimeError unless frames and page tables agree exactly.
    """
    seen = set()
    for idx, occ in enumerate(self.pool.frames):
      if occ is None:
        continue
      pid, page = occ
      if occ in seen:
        raise RuntimeError(f"pid={pid} page={page} resident in more than one frame")
      seen.add(occ)
      if self.page_tables[pid].lookup(page) != idx:
        raise RuntimeError(f"frame {idx} holds pid={pid} page={page} but its page table disagrees")
      if idx not in self.pool.candidate_set(pid):
        raise RuntimeError(f"frame {idx} is outside the candidate set of pid={pid}")

    for pt in self.page_tables:
      for page, idx in pt.page_to_frame.items():
        if self.pool.occupant(idx) != (pt.process_id, page):
          raise RuntimeError(
            f"pid={pt.process_id} page={page} maps to frame {idx} "
            f"held by {self.pool.occupant(idx)}"
          )


def simulate(trace: Trace, config: SimulationConfig, check: bool = False) -> SimulationResult:
  return Simulator(config).run(trace, check=check)


def compare_policies(trace: Trace, config: SimulationConfig) -> List[SimulationResult]:
  """
  Run every policy under both topologies, keeping the rest of `config`.
  Local runs are skipped when there are fewer frames than processes.
  """
  results: List[SimulationResult] = []
  for name in policies.available_policies():
    for topology in TOPOLOGIES:
      if topology == "local" and config.total_frames < config.num_processes:
        continue
      cfg = SimulationConfig(
        page_size=config.page_size,
        total_frames=config.total_frames,
        policy=name,
        topology=topology,
        num_processes=config.num_processes,
        seed=config.seed,
      )
      results.append(simulate(trace, cfg))
  return results


def format_result(result: SimulationResult) -> str:
  lines = [f"Global page fault count: {result.global_faults}"]
  for pid, faults in enumerate(result.per_process_faults):
    lines.append(f"Process {pid} page fault count: {faults}")
  return "\n".join(lines)


def format_comparison(results: Sequence[SimulationResult]) -> str:
  if not results:
    return ""
  num_processes = len(results[0].per_process_faults)
  header = f"{'Policy':<10}{'Topology':<10}{'Faults':>8}{'Fault rate':>12}"
  header += "".join(f"{'P' + str(pid):>8}" for pid in range(num_processes))
  lines = [header, "-" * len(header)]
  for r in results:
    row = f"{r.policy_name:<10}{r.topology:<10}{r.global_faults:>8}{r.fault_rate():>12.4f}"
    row += "".join(f"{f:>8}" for f in r.per_process_faults)
    lines.append(row)
  return "\n".join(lines)


# CLI

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
    description="Multi-process page replacement simulator."
  )
  parser.add_argument("page_size", type=int, help="page size in bytes (power of two)")
  parser.add_argument("frames", type=int, help="total physical frames")
  parser.add_argument("policy", type=str, help=f"one of {policies.available_policies()}")
  parser.add_argument("trace", type=str, help="trace file, or a predefined trace name")
  parser.add_argument("--topology", "-T", type=str, default="global", choices=TOPOLOGIES)
  parser.add_argument("--processes", "-n", type=int, default=4)
  parser.add_argument("--seed", "-s", type=int, default=None)
  parser.add_argument("--compare", "-c", action="store_true",
                      help="run every policy under both topologies")
  parser.add_argument("--profile", "-p", action="store_true",
                      help="print a per-process access-pattern profile")
  parser.add_argument("--check", action="store_true",
                      help="verify frame/page-table consistency after every access")
  parser.add_argument("--verbose", "-v", action="store_true")
  args = parser.parse_args(argv)

  args.config = SimulationConfig(
    page_size=args.page_size,
    total_frames=args.frames,
    policy=args.policy,
    topology=args.topology,
    num_processes=args.processes,
    seed=args.seed,
  )
  try:
    args.config.validate()
  except ConfigError as e:
    parser.error(str(e))
  return args


def load_trace(trace_arg: str, config: SimulationConfig) -> Trace:
  if os.path.isfile(trace_arg):
    return traces.load_trace(trace_arg, config.page_size, config.num_processes)

  records = traces.get_trace(trace_arg, page_size=config.page_size)
  for pid, _ in records:
    if pid >= config.num_processes:
      raise TraceFormatError(f"process id {pid} outside [0, {config.num_processes})")
  return Trace.from_records(records, config.page_size)


def main(argv: Optional[Sequence[str]] = None) -> int:
  args = parse_args(argv)
  config = args.config

  try:
    trace = load_trace(args.trace, config)
  except (OSError, ValueError) as e:
    print(f"error: cannot load trace '{args.trace}': {e}", file=sys.stderr)
    return 1

  if args.profile:
    print(format_profile(profile_trace(trace, config.num_processes)))
    print()

  if args.compare:
    print(format_comparison(compare_policies(trace, config)))
    return 0

  sim = Simulator(config, verbose=args.verbose)
  result = sim.run(trace, check=args.check)
  print(format_result(result))

  if args.verbose:
    print(f"Hit rate:    {result.hit_rate():.4f}")
    print(f"Fault rate:  {result.fault_rate():.4f}")
    print("Final frame state:")
    for idx, occ in enumerate(sim.pool.frames):
      print(f"  Frame {idx}: {occ}")

  return 0


if __name__ == "__main__":
  sys.exit(main())

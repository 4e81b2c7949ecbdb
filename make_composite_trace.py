from __future__ import annotations

import argparse
from typing import List, Optional, Sequence

import traces


def make_composite_trace(
  length_per_phase: int = 200,
  page_size: int = 4096,
  seed: Optional[int] = 7,
) -> List[traces.Record]:
  """
  Concatenate phases with different per-process patterns:
  all processes looping, then scan vs hot set, then a random mix.
  """
  trace: List[traces.Record] = []

  # --- Phase 1: every process loops over a small working set ---
  trace += traces.make_multiprocess_trace(
    ["loop"] * 4, length_per_phase, page_size, "round_robin", seed
  )

  # --- Phase 2: two scanners contend with two hot-set processes ---
  trace += traces.make_multiprocess_trace(
    ["sequential", "hotset", "sequential", "hotset"],
    length_per_phase, page_size, "round_robin",
    None if seed is None else seed + 1,
  )

  # --- Phase 3: one process per pattern, randomly interleaved ---
  trace += traces.make_multiprocess_trace(
    ["sequential", "hotset", "loop", "random"],
    length_per_phase, page_size, "random",
    None if seed is None else seed + 2,
  )

  return trace


def main(argv: Optional[Sequence[str]] = None) -> None:
  parser = argparse.ArgumentParser(description="Write a composite multi-process trace.")
  parser.add_argument("output", nargs="?", default="composite_trace.txt")
  parser.add_argument("--length", type=int, default=200, help="accesses per process per phase")
  parser.add_argument("--page-size", type=int, default=4096)
  parser.add_argument("--seed", type=int, default=7)
  args = parser.parse_args(argv)

  comp = make_composite_trace(args.length, args.page_size, args.seed)
  count = traces.write_trace(args.output, comp)
  print(f"Composite trace ({count} accesses) written to {args.output}")


# Write to file so the simulator can load it as a custom trace
if __name__ == "__main__":
  main()

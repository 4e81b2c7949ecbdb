from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import policies

TOPOLOGIES = ("global", "local")
DEFAULT_NUM_PROCESSES = 4


class ConfigError(ValueError):
  """
  Invalid simulation parameters; raised before any trace is replayed.
  """


@dataclass
class SimulationConfig:
  page_size: int
  total_frames: int
  policy: str
  topology: str = "global"
  num_processes: int = DEFAULT_NUM_PROCESSES
  seed: Optional[int] = None

  @property
  def page_shift(self) -> int:
    return self.page_size.bit_length() - 1

  @property
  def frames_per_process(self) -> int:
    return self.total_frames // self.num_processes

  def validate(self) -> "SimulationConfig":
    """
    Check every parameter and normalise names to lower case.
    Returns self so calls can be chained.
    """
    if self.page_size <= 0 or self.page_size & (self.page_size - 1):
      raise ConfigError(f"page size must be a positive power of two, got {self.page_size}")
    if self.total_frames <= 0:
      raise ConfigError(f"frame count must be positive, got {self.total_frames}")
    if self.num_processes <= 0:
      raise ConfigError(f"process count must be positive, got {self.num_processes}")

    self.policy = self.policy.lower()
    if self.policy not in policies.available_policies():
      raise ConfigError(
        f"Unknown policy '{self.policy}'. Available: {policies.available_policies()}"
      )

    self.topology = self.topology.lower()
    if self.topology not in TOPOLOGIES:
      raise ConfigError(f"Unknown topology '{self.topology}'. Available: {list(TOPOLOGIES)}")

    if self.topology == "local" and self.total_frames < self.num_processes:
      raise ConfigError(
        f"local topology needs at least one frame per process "
        f"({self.total_frames} frames for {self.num_processes} processes)"
      )
    return self

from __future__ import annotations

from typing import Dict, List, Optional


class PageTable:
  """
  Resident pages of a single process and the frames holding them.

  A page is present here iff some frame currently holds it for this
  process. The fault counter only ever moves forward.
  """

  def __init__(self, process_id: int):
    self.process_id = process_id
    self.page_to_frame: Dict[int, int] = {}
    self._fault_count = 0

  @property
  def fault_count(self) -> int:
    return self._fault_count

  def record_fault(self) -> None:
    self._fault_count += 1

  def lookup(self, page: int) -> Optional[int]:
    return self.page_to_frame.get(page)

  def insert(self, page: int, frame_idx: int) -> None:
    self.page_to_frame[page] = frame_idx

  def remove(self, page: int) -> None:
    del self.page_to_frame[page]

  def resident_pages(self) -> List[int]:
    return sorted(self.page_to_frame)

  def __contains__(self, page: int) -> bool:
    return page in self.page_to_frame

  def __len__(self) -> int:
    return len(self.page_to_frame)

  def __repr__(self) -> str:
    return (f"PageTable(pid={self.process_id}, resident={len(self)}, "
            f"faults={self._fault_count})")

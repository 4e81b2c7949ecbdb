from page_table import PageTable


class TestPageTable:
  """Per-process page -> frame mapping and fault counter."""

  def test_lookup_missing_returns_none(self):
    pt = PageTable(0)
    assert pt.lookup(7) is None
    assert 7 not in pt

  def test_insert_and_remove(self):
    pt = PageTable(1)
    pt.insert(7, 3)
    assert pt.lookup(7) == 3
    assert 7 in pt
    assert len(pt) == 1
    pt.remove(7)
    assert pt.lookup(7) is None
    assert len(pt) == 0

  def test_record_fault_counts_once_per_call(self):
    pt = PageTable(2)
    assert pt.fault_count == 0
    pt.record_fault()
    pt.record_fault()
    assert pt.fault_count == 2

  def test_resident_pages_sorted(self):
    pt = PageTable(0)
    for page, frame in [(9, 0), (2, 1), (5, 2)]:
      pt.insert(page, frame)
    assert pt.resident_pages() == [2, 5, 9]

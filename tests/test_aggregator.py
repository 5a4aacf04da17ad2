# tests/test_aggregator.py - Tests for aggregator module
"""
Unit tests for the SampleAggregator and AllocationAggregator classes.
"""

import pytest
from datetime import datetime

from profiling_analysis.collector.aggregator import (
    AllocationAggregator,
    SampleAggregator,
    aggregate_allocations,
    aggregate_samples,
    collect_snapshot,
)
from profiling_analysis.collector.frames import INVALID_FRAME, AllocationEvent, Frame, resolve_frame
from profiling_analysis.collector.snapshot import Location, ProfileEntry, ProfileSnapshot
from profiling_analysis.exceptions import MalformedSnapshotError


class TestSampleAggregator:
    """Test cases for SampleAggregator"""

    def test_aggregate_counts_invalid_frames_in_total(self):
        """Invalid frames count toward total_captured but produce no entry"""
        frames = [
            Frame("f", "a.py", 5),
            Frame("f", "a.py", 5),
            Frame("g", "b.py", 9),
            INVALID_FRAME,
            Frame("f", "a.py", 5),
        ]

        snapshot = SampleAggregator().aggregate(frames)

        assert snapshot.total_captured == 5
        assert len(snapshot.entries) == 2

        first, second = snapshot.entries
        assert (first.function, first.file, first.line) == ("f", "a.py", 5)
        assert first.sample_count == 3
        assert first.percentage == pytest.approx(60.0)
        assert (second.function, second.line) == ("g", 9)
        assert second.sample_count == 1
        assert second.percentage == pytest.approx(20.0)

        assert snapshot.counted_samples == 4
        assert snapshot.discarded_samples == 1

    def test_aggregate_empty_capture(self):
        """An empty capture gives an empty snapshot, not an error"""
        snapshot = SampleAggregator().aggregate([])

        assert snapshot.total_captured == 0
        assert snapshot.entries == ()

    def test_aggregate_only_invalid_frames(self):
        """Only invalid frames: nothing attributed, everything counted"""
        snapshot = aggregate_samples([INVALID_FRAME, None, ("unknown function", "x.py", 1)])

        assert snapshot.total_captured == 3
        assert snapshot.entries == ()

    def test_aggregate_accepts_tuples(self):
        """Raw (function, file, line) tuples are accepted as frames"""
        snapshot = aggregate_samples([("f", "a.py", 1), ("f", "a.py", 1)])

        assert snapshot.entries[0].sample_count == 2
        assert snapshot.entries[0].percentage == pytest.approx(100.0)

    def test_entries_sorted_with_deterministic_ties(self):
        """Equal counts are ordered by function, file, then line"""
        frames = [("b", "x.py", 1), ("a", "y.py", 2), ("a", "x.py", 3), ("c", "z.py", 1), ("c", "z.py", 1)]

        snapshot = aggregate_samples(frames)

        assert [(e.function, e.file) for e in snapshot.entries] == [
            ("c", "z.py"), ("a", "x.py"), ("a", "y.py"), ("b", "x.py")
        ]

    def test_same_function_different_lines_are_distinct(self):
        snapshot = aggregate_samples([("f", "a.py", 1), ("f", "a.py", 2)])
        assert len(snapshot.entries) == 2

    def test_percentages_never_exceed_total(self):
        frames = [("f", "a.py", i % 4) for i in range(37)] + [INVALID_FRAME] * 3
        snapshot = aggregate_samples(frames)

        assert sum(e.sample_count for e in snapshot.entries) <= snapshot.total_captured
        assert sum(e.percentage for e in snapshot.entries) <= 100.0 + 1e-9

    def test_metadata_and_timestamp(self):
        """Metadata is stored read-only"""
        ts = datetime(2024, 1, 2, 3, 4, 5)
        snapshot = aggregate_samples([("f", "a.py", 1)], metadata={'run': 'baseline'}, timestamp=ts)

        assert snapshot.timestamp == ts
        assert snapshot.metadata['run'] == 'baseline'
        with pytest.raises(TypeError):
            snapshot.metadata['run'] = 'other'

    def test_collect_snapshot_drains_source(self):
        def source():
            return iter([Frame("f", "a.py", 1), INVALID_FRAME])

        snapshot = collect_snapshot(source, metadata={'workload': 'test'})

        assert snapshot.total_captured == 2
        assert snapshot.metadata['workload'] == 'test'

    def test_collect_snapshot_propagates_workload_fault(self):
        """A failing source produces no snapshot"""
        def source():
            raise RuntimeError("workload crashed")

        with pytest.raises(RuntimeError, match="workload crashed"):
            collect_snapshot(source)


class TestResolveFrame:
    """Test cases for resolve_frame"""

    def test_valid_frame(self):
        assert resolve_frame(Frame("f", "a.py", 3)) == Location("f", "a.py", 3)

    @pytest.mark.parametrize("raw", [
        None,
        INVALID_FRAME,
        ("", "a.py", 1),
        ("unknown function", "a.py", 1),
        ("f", "a.py", "1"),
        ("f", "a.py", True),
        ("f", "a.py"),
        "f@a.py:1",
    ])
    def test_invalid_frames(self, raw):
        assert resolve_frame(raw) is None


class TestAllocationAggregator:
    """Test cases for AllocationAggregator"""

    def test_aggregate_allocations(self):
        """Sites are sorted by total bytes and carry the average size"""
        events = [
            AllocationEvent(100, Frame("small", "a.py", 1)),
            AllocationEvent(100, Frame("small", "a.py", 1)),
            AllocationEvent(100, Frame("small", "a.py", 1)),
            AllocationEvent(5000, Frame("big", "b.py", 2)),
            AllocationEvent(64, INVALID_FRAME),
        ]

        snapshot = AllocationAggregator().aggregate(events)

        assert snapshot.total_allocations == 5
        assert snapshot.total_bytes == 5364
        assert [s.function for s in snapshot.sites] == ["big", "small"]

        small = snapshot.sites[1]
        assert small.count == 3
        assert small.total_bytes == 300
        assert small.avg_bytes == pytest.approx(100.0)

    def test_skip_prefixes_still_count_in_totals(self):
        """Runtime internals produce no site but still count"""
        events = [
            (256, Frame("_internal_alloc", "runtime.py", 1)),
            (128, Frame("user", "app.py", 2)),
        ]

        snapshot = aggregate_allocations(events, skip_function_prefixes=("_internal",))

        assert snapshot.total_allocations == 2
        assert snapshot.total_bytes == 384
        assert [s.function for s in snapshot.sites] == ["user"]

    def test_empty_allocation_capture(self):
        snapshot = aggregate_allocations([])

        assert snapshot.total_allocations == 0
        assert snapshot.total_bytes == 0
        assert snapshot.sites == ()


class TestSnapshotInvariants:
    """Test cases for snapshot validation"""

    def test_duplicate_locations_rejected(self):
        entry = ProfileEntry("f", "a.py", 1, 1, 10.0)
        with pytest.raises(MalformedSnapshotError):
            ProfileSnapshot(datetime.now(), 10, [entry, entry])

    def test_counts_above_total_rejected(self):
        with pytest.raises(MalformedSnapshotError):
            ProfileSnapshot(datetime.now(), 1, [ProfileEntry("f", "a.py", 1, 2, 200.0)])

    def test_get_by_location(self):
        entry = ProfileEntry("f", "a.py", 1, 1, 50.0)
        snapshot = ProfileSnapshot(datetime.now(), 2, [entry])

        assert snapshot.get(Location("f", "a.py", 1)) == entry
        assert snapshot.get(Location("g", "a.py", 1)) is None

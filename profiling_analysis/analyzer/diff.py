# profiling_analysis/analyzer/diff.py - Snapshot comparison
"""
Computes signed per-location deltas between two snapshots.

A positive delta means the location grew from the "before" snapshot to the
"after" snapshot. Locations whose count did not change are omitted.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple
import logging

from profiling_analysis.collector.snapshot import AllocationSnapshot, Location, ProfileSnapshot
from profiling_analysis.exceptions import InvalidArgumentError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffRecord:
    """
    Change of one location between two snapshots.

    For allocation snapshots, counts are allocation counts, percentages are
    shares of total allocated bytes and delta_bytes carries the byte change.
    """
    location: Location
    delta_count: int
    delta_percentage: float
    before_count: int = 0
    after_count: int = 0
    delta_bytes: int = 0

    @property
    def function(self) -> str:
        return self.location.function

    @property
    def file(self) -> str:
        return self.location.file

    @property
    def line(self) -> int:
        return self.location.line


@dataclass(frozen=True)
class SnapshotDiff:
    """
    Result of diff_snapshots: ordered records plus aggregate totals.
    """
    records: Tuple[DiffRecord, ...]
    total_increase: int
    total_decrease: int

    def __len__(self):
        return len(self.records)

    def __iter__(self) -> Iterator[DiffRecord]:
        return iter(self.records)

    def get(self, location: Location) -> Optional[DiffRecord]:
        for record in self.records:
            if record.location == location:
                return record
        return None

    @property
    def locations(self) -> List[Location]:
        return [r.location for r in self.records]

    def top(self, n: int) -> List[DiffRecord]:
        return list(self.records[:max(n, 0)])

    def increases(self) -> List[DiffRecord]:
        return [r for r in self.records if r.delta_count > 0]

    def decreases(self) -> List[DiffRecord]:
        return [r for r in self.records if r.delta_count < 0]


# (count, percentage, bytes) per location
Measures = Dict[Location, Tuple[int, float, int]]


def _profile_measures(snapshot: ProfileSnapshot) -> Measures:
    return {e.location: (e.sample_count, e.percentage, 0) for e in snapshot.entries}


def _allocation_measures(snapshot: AllocationSnapshot) -> Measures:
    total = snapshot.total_bytes
    return {
        s.location: (s.count, 100.0 * s.total_bytes / total if total else 0.0, s.total_bytes)
        for s in snapshot.sites
    }


def _measures(snapshot) -> Measures:
    if isinstance(snapshot, ProfileSnapshot):
        return _profile_measures(snapshot)
    if isinstance(snapshot, AllocationSnapshot):
        return _allocation_measures(snapshot)
    raise InvalidArgumentError(
        f"Cannot diff object of type {type(snapshot).__name__}", argument='snapshot'
    )


def diff_snapshots(before, after) -> SnapshotDiff:
    """
    Compare two snapshots of the same kind.

    Args:
        before: Baseline snapshot
        after: Comparison snapshot

    Returns:
        SnapshotDiff with records sorted by |delta_count| descending, ties
        broken by location

    Raises:
        InvalidArgumentError: The snapshots are of different kinds
    """
    if type(before) is not type(after):
        raise InvalidArgumentError(
            f"Cannot diff {type(before).__name__} against {type(after).__name__}",
            argument='after'
        )

    map_before = _measures(before)
    map_after = _measures(after)

    records = []
    for location in set(map_before) | set(map_after):
        count_before, pct_before, bytes_before = map_before.get(location, (0, 0.0, 0))
        count_after, pct_after, bytes_after = map_after.get(location, (0, 0.0, 0))

        delta = count_after - count_before
        if delta == 0:
            continue

        records.append(DiffRecord(
            location=location,
            delta_count=delta,
            delta_percentage=pct_after - pct_before,
            before_count=count_before,
            after_count=count_after,
            delta_bytes=bytes_after - bytes_before,
        ))

    records.sort(key=lambda r: (-abs(r.delta_count), r.location))

    total_increase = sum(r.delta_count for r in records if r.delta_count > 0)
    total_decrease = sum(r.delta_count for r in records if r.delta_count < 0)

    logger.info(
        f"Compared snapshots: {len(records)} changed locations "
        f"(+{total_increase} / {total_decrease})"
    )
    return SnapshotDiff(tuple(records), total_increase, total_decrease)

# profiling_analysis/collector/snapshot.py - Snapshot data model
"""
Immutable result types produced by the aggregators.

A snapshot is written once by a single aggregation pass (or by loading a
persisted file) and is never mutated afterwards, so it can be shared freely
between the query, categorization and diff components.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from profiling_analysis.exceptions import MalformedSnapshotError


@dataclass(frozen=True, order=True)
class Location:
    """
    Identity key of a hotspot: (function, file, line).

    Ordering is lexicographic on function, then file, then line and is used
    as the deterministic tie-breaker wherever entries are sorted.
    """
    function: str
    file: str
    line: int

    def __str__(self):
        return f"{self.function} @ {self.file}:{self.line}"


@dataclass(frozen=True)
class ProfileEntry:
    """
    A sampled location with its sample count.

    percentage is relative to the owning snapshot's total_captured.
    """
    function: str
    file: str
    line: int
    sample_count: int
    percentage: float

    @property
    def location(self) -> Location:
        return Location(self.function, self.file, self.line)


@dataclass(frozen=True)
class AllocationSite:
    """
    A location that allocated memory, with allocation count and bytes.
    """
    function: str
    file: str
    line: int
    count: int
    total_bytes: int

    @property
    def location(self) -> Location:
        return Location(self.function, self.file, self.line)

    @property
    def avg_bytes(self) -> float:
        """Average bytes per allocation"""
        return self.total_bytes / self.count if self.count else 0.0


def _freeze_metadata(metadata: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(metadata or {}))


def _check_unique(items: Iterable, kind: str):
    seen = set()
    for item in items:
        location = item.location
        if location in seen:
            raise MalformedSnapshotError(f"Duplicate {kind} location: {location}")
        seen.add(location)


@dataclass(frozen=True)
class ProfileSnapshot:
    """
    Aggregated CPU sample profile.

    Attributes:
        timestamp: When the capture was aggregated
        total_captured: Number of captured frames, including discarded
            invalid frames. Denominator for every entry percentage.
        entries: Entries ordered by sample_count descending
        metadata: Free-form, read-only metadata
    """
    timestamp: datetime
    total_captured: int
    entries: Tuple[ProfileEntry, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, 'entries', tuple(self.entries))
        object.__setattr__(self, 'metadata', _freeze_metadata(self.metadata))

        if self.total_captured < 0:
            raise MalformedSnapshotError(f"total_captured must be non-negative, got {self.total_captured}")

        _check_unique(self.entries, 'entry')

        counted = sum(e.sample_count for e in self.entries)
        if counted > self.total_captured:
            raise MalformedSnapshotError(
                f"Entries account for {counted} samples but only {self.total_captured} were captured"
            )

    @property
    def total_samples(self) -> int:
        """Alias of total_captured, matching the persisted field name"""
        return self.total_captured

    @property
    def counted_samples(self) -> int:
        """Samples attributed to an entry (excludes discarded frames)"""
        return sum(e.sample_count for e in self.entries)

    @property
    def discarded_samples(self) -> int:
        return self.total_captured - self.counted_samples

    def get(self, location: Location) -> Optional[ProfileEntry]:
        for entry in self.entries:
            if entry.location == location:
                return entry
        return None


@dataclass(frozen=True)
class AllocationSnapshot:
    """
    Aggregated allocation profile.

    Attributes:
        timestamp: When the capture was aggregated
        total_allocations: Number of captured allocation events
        total_bytes: Bytes allocated by all captured events
        sites: Allocation sites ordered by total_bytes descending
        metadata: Free-form, read-only metadata
    """
    timestamp: datetime
    total_allocations: int
    total_bytes: int
    sites: Tuple[AllocationSite, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, 'sites', tuple(self.sites))
        object.__setattr__(self, 'metadata', _freeze_metadata(self.metadata))

        if self.total_allocations < 0 or self.total_bytes < 0:
            raise MalformedSnapshotError("Allocation totals must be non-negative")

        _check_unique(self.sites, 'allocation site')

        counted = sum(s.count for s in self.sites)
        if counted > self.total_allocations:
            raise MalformedSnapshotError(
                f"Sites account for {counted} allocations but only {self.total_allocations} were captured"
            )

    @property
    def entries(self) -> Tuple[AllocationSite, ...]:
        """Alias of sites so query functions work on both snapshot kinds"""
        return self.sites

    @property
    def total_captured(self) -> int:
        return self.total_allocations

    def get(self, location: Location) -> Optional[AllocationSite]:
        for site in self.sites:
            if site.location == location:
                return site
        return None


def metadata_dict(snapshot) -> Dict[str, Any]:
    """Return a mutable copy of a snapshot's metadata."""
    return dict(snapshot.metadata)

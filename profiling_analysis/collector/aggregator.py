# profiling_analysis/collector/aggregator.py - Sample and allocation aggregation
"""
Aggregates raw captured frames into snapshots.

Each call consumes one finite, already captured sequence and produces one
immutable snapshot. Aggregators keep no state between calls.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple
from collections import defaultdict
from datetime import datetime
import logging

from profiling_analysis.collector.frames import AllocationEvent, SampleSource, resolve_frame
from profiling_analysis.collector.snapshot import (
    AllocationSite,
    AllocationSnapshot,
    Location,
    ProfileEntry,
    ProfileSnapshot,
)


class SampleAggregator:
    """
    Aggregates CPU stack samples into a ProfileSnapshot.

    Invalid frames count toward total_captured but produce no entry, so
    percentages are always relative to everything that was captured.
    """

    def __init__(self):
        """
        Initialize the sample aggregator.
        """
        self.logger = logging.getLogger(__name__)

    def aggregate(self, frames: Iterable, metadata: Optional[Mapping[str, Any]] = None,
                  timestamp: Optional[datetime] = None) -> ProfileSnapshot:
        """
        Aggregate captured frames into a snapshot.

        Args:
            frames: Captured frames (Frame, (function, file, line) tuples or
                invalid markers)
            metadata: Optional metadata stored with the snapshot
            timestamp: Snapshot timestamp (default: now)

        Returns:
            ProfileSnapshot with entries sorted by sample count descending
        """
        counts: Dict[Location, int] = defaultdict(int)
        total_captured = 0
        invalid = 0

        for raw in frames:
            total_captured += 1
            location = resolve_frame(raw)
            if location is None:
                invalid += 1
                continue
            counts[location] += 1

        timestamp = timestamp or datetime.now()

        if not counts:
            self.logger.warning(
                f"No valid frames captured ({total_captured} samples). The workload may be too fast."
            )
            return ProfileSnapshot(timestamp, total_captured, (), metadata or {})

        entries = [
            ProfileEntry(
                function=loc.function,
                file=loc.file,
                line=loc.line,
                sample_count=count,
                percentage=100.0 * count / total_captured,
            )
            for loc, count in counts.items()
        ]
        entries.sort(key=lambda e: (-e.sample_count, e.location))

        if invalid:
            self.logger.debug(f"Discarded {invalid} invalid frames")

        self.logger.info(
            f"Aggregated {total_captured} samples into {len(entries)} unique locations"
        )
        return ProfileSnapshot(timestamp, total_captured, entries, metadata or {})


class AllocationAggregator:
    """
    Aggregates allocation events into an AllocationSnapshot.

    Every event counts toward total_allocations and total_bytes. Events whose
    frame is invalid, or belongs to low-level runtime code matched by the
    skip prefixes, produce no allocation site.
    """

    def __init__(self, skip_function_prefixes: Sequence[str] = (),
                 skip_file_prefixes: Sequence[str] = ()):
        """
        Initialize the allocation aggregator.

        Args:
            skip_function_prefixes: Function name prefixes treated as runtime internals
            skip_file_prefixes: File path prefixes treated as runtime internals
        """
        self.skip_function_prefixes = tuple(skip_function_prefixes)
        self.skip_file_prefixes = tuple(skip_file_prefixes)
        self.logger = logging.getLogger(__name__)

    def _is_skipped(self, location: Location) -> bool:
        if self.skip_function_prefixes and location.function.startswith(self.skip_function_prefixes):
            return True
        if self.skip_file_prefixes and location.file.startswith(self.skip_file_prefixes):
            return True
        return False

    def aggregate(self, events: Iterable[AllocationEvent],
                  metadata: Optional[Mapping[str, Any]] = None,
                  timestamp: Optional[datetime] = None) -> AllocationSnapshot:
        """
        Aggregate allocation events into a snapshot.

        Args:
            events: Captured AllocationEvent objects or (size, frame) pairs
            metadata: Optional metadata stored with the snapshot
            timestamp: Snapshot timestamp (default: now)

        Returns:
            AllocationSnapshot with sites sorted by total bytes descending
        """
        counts: Dict[Location, int] = defaultdict(int)
        sizes: Dict[Location, int] = defaultdict(int)
        total_allocations = 0
        total_bytes = 0

        for event in events:
            if isinstance(event, AllocationEvent):
                size, frame = event.size, event.frame
            else:
                size, frame = event

            total_allocations += 1
            total_bytes += size

            location = resolve_frame(frame)
            if location is None or self._is_skipped(location):
                continue

            counts[location] += 1
            sizes[location] += size

        timestamp = timestamp or datetime.now()

        if not counts:
            self.logger.warning(
                "No allocations attributed to a site. Workload may be allocation-free or the sample rate too low."
            )
            return AllocationSnapshot(timestamp, total_allocations, total_bytes, (), metadata or {})

        sites = [
            AllocationSite(
                function=loc.function,
                file=loc.file,
                line=loc.line,
                count=count,
                total_bytes=sizes[loc],
            )
            for loc, count in counts.items()
        ]
        sites.sort(key=lambda s: (-s.total_bytes, -s.count, s.location))

        self.logger.info(
            f"Aggregated {total_allocations} allocations ({total_bytes} bytes) into {len(sites)} sites"
        )
        return AllocationSnapshot(timestamp, total_allocations, total_bytes, sites, metadata or {})


def aggregate_samples(frames: Iterable, metadata: Optional[Mapping[str, Any]] = None,
                      timestamp: Optional[datetime] = None) -> ProfileSnapshot:
    """Aggregate captured frames with a default SampleAggregator."""
    return SampleAggregator().aggregate(frames, metadata=metadata, timestamp=timestamp)


def aggregate_allocations(events: Iterable[AllocationEvent],
                          metadata: Optional[Mapping[str, Any]] = None,
                          timestamp: Optional[datetime] = None,
                          skip_function_prefixes: Tuple[str, ...] = (),
                          skip_file_prefixes: Tuple[str, ...] = ()) -> AllocationSnapshot:
    """Aggregate allocation events with an AllocationAggregator."""
    aggregator = AllocationAggregator(skip_function_prefixes, skip_file_prefixes)
    return aggregator.aggregate(events, metadata=metadata, timestamp=timestamp)


def collect_snapshot(source: SampleSource, metadata: Optional[Mapping[str, Any]] = None,
                     aggregator: Optional[SampleAggregator] = None) -> ProfileSnapshot:
    """
    Pull frames from a sample source and aggregate them.

    The source is fully drained before the snapshot is built. Any exception
    raised by the source (for example by the instrumented workload)
    propagates and no snapshot is produced.

    Args:
        source: Zero-argument callable returning the captured frames
        metadata: Optional metadata stored with the snapshot
        aggregator: Aggregator to use (default: SampleAggregator())

    Returns:
        ProfileSnapshot
    """
    frames = list(source())
    aggregator = aggregator or SampleAggregator()
    return aggregator.aggregate(frames, metadata=metadata)

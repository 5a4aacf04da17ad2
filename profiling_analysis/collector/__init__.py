# profiling_analysis/collector/__init__.py - Sample collection module
"""
Collector module turning captured samples into snapshots.

This module provides:
- frames.py: Raw frame and allocation event types
- snapshot.py: Immutable snapshot data model
- aggregator.py: Sample and allocation aggregation
"""

from profiling_analysis.collector.frames import INVALID_FRAME, AllocationEvent, Frame
from profiling_analysis.collector.snapshot import (
    AllocationSite,
    AllocationSnapshot,
    Location,
    ProfileEntry,
    ProfileSnapshot,
)
from profiling_analysis.collector.aggregator import (
    AllocationAggregator,
    SampleAggregator,
    aggregate_allocations,
    aggregate_samples,
    collect_snapshot,
)

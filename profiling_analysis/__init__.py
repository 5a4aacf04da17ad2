# profiling_analysis/__init__.py - Profile analysis package
"""
Aggregation, query, categorization and comparison of profiling snapshots.
"""

__version__ = "0.1.0"

from profiling_analysis.collector import (
    INVALID_FRAME,
    AllocationEvent,
    AllocationSite,
    AllocationSnapshot,
    Frame,
    Location,
    ProfileEntry,
    ProfileSnapshot,
    aggregate_allocations,
    aggregate_samples,
    collect_snapshot,
)
from profiling_analysis.analyzer.diff import diff_snapshots
from profiling_analysis.exporters.json_exporter import load_snapshot, save_snapshot

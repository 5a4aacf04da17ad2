# profiling_analysis/exporters/json_exporter.py - JSON snapshot persistence
"""
Saves and loads snapshots as JSON files and manages named benchmarks.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, List, Union
import logging

from profiling_analysis.analyzer.diff import SnapshotDiff, diff_snapshots
from profiling_analysis.collector.snapshot import (
    AllocationSite,
    AllocationSnapshot,
    ProfileEntry,
    ProfileSnapshot,
    metadata_dict,
)
from profiling_analysis.exceptions import MalformedSnapshotError, SnapshotNotFoundError


logger = logging.getLogger(__name__)

Snapshot = Union[ProfileSnapshot, AllocationSnapshot]


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Convert a snapshot into its JSON-friendly representation.
    """
    if isinstance(snapshot, AllocationSnapshot):
        return {
            'timestamp': snapshot.timestamp.isoformat(),
            'total_allocations': snapshot.total_allocations,
            'total_bytes': snapshot.total_bytes,
            'sites': [
                {
                    'func': s.function,
                    'file': s.file,
                    'line': s.line,
                    'count': s.count,
                    'total_bytes': s.total_bytes,
                    'avg_bytes': s.avg_bytes,
                }
                for s in snapshot.sites
            ],
            'metadata': dict(snapshot.metadata),
        }

    return {
        'timestamp': snapshot.timestamp.isoformat(),
        'total_samples': snapshot.total_captured,
        'entries': [
            {
                'func': e.function,
                'file': e.file,
                'line': e.line,
                'samples': e.sample_count,
                'percentage': e.percentage,
            }
            for e in snapshot.entries
        ],
        'metadata': dict(snapshot.metadata),
    }


def _require(data: Dict[str, Any], key: str, kind, context: str):
    if key not in data:
        raise MalformedSnapshotError(f"Missing field {key!r} in {context}")
    value = data[key]
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, kind):
        raise MalformedSnapshotError(f"Field {key!r} in {context} has invalid type {type(value).__name__}")
    return value


def _non_negative(value: int, key: str, context: str) -> int:
    if value < 0:
        raise MalformedSnapshotError(f"Field {key!r} in {context} must be non-negative")
    return value


def _parse_timestamp(data: Dict[str, Any]) -> datetime:
    raw = _require(data, 'timestamp', str, 'snapshot')
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise MalformedSnapshotError(f"Invalid timestamp {raw!r}") from e


def _parse_metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    metadata = data.get('metadata', {})
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise MalformedSnapshotError("Field 'metadata' must be an object")
    return metadata


def _parse_entries(data: Dict[str, Any]) -> List[ProfileEntry]:
    raw_entries = _require(data, 'entries', list, 'snapshot')
    entries = []
    for idx, raw in enumerate(raw_entries):
        context = f"entry {idx}"
        if not isinstance(raw, dict):
            raise MalformedSnapshotError(f"{context} is not an object")
        entries.append(ProfileEntry(
            function=_require(raw, 'func', str, context),
            file=_require(raw, 'file', str, context),
            line=_require(raw, 'line', int, context),
            sample_count=_non_negative(_require(raw, 'samples', int, context), 'samples', context),
            percentage=float(_require(raw, 'percentage', (int, float), context)),
        ))
    return entries


def _parse_sites(data: Dict[str, Any]) -> List[AllocationSite]:
    raw_sites = _require(data, 'sites', list, 'snapshot')
    sites = []
    for idx, raw in enumerate(raw_sites):
        context = f"site {idx}"
        if not isinstance(raw, dict):
            raise MalformedSnapshotError(f"{context} is not an object")
        count = _require(raw, 'count', int, context)
        if count <= 0:
            raise MalformedSnapshotError(f"Field 'count' in {context} must be positive")
        sites.append(AllocationSite(
            function=_require(raw, 'func', str, context),
            file=_require(raw, 'file', str, context),
            line=_require(raw, 'line', int, context),
            count=count,
            total_bytes=_non_negative(_require(raw, 'total_bytes', int, context), 'total_bytes', context),
        ))
    return sites


def snapshot_from_dict(data: Any) -> Snapshot:
    """
    Build a snapshot from its JSON representation.

    The kind is detected from the presence of a 'sites' array. avg_bytes is
    derived from count and total_bytes, never read back.

    Raises:
        MalformedSnapshotError: data does not match the snapshot schema
    """
    if not isinstance(data, dict):
        raise MalformedSnapshotError("Snapshot data must be a JSON object")

    timestamp = _parse_timestamp(data)
    metadata = _parse_metadata(data)

    if 'sites' in data:
        return AllocationSnapshot(
            timestamp=timestamp,
            total_allocations=_non_negative(
                _require(data, 'total_allocations', int, 'snapshot'), 'total_allocations', 'snapshot'),
            total_bytes=_non_negative(_require(data, 'total_bytes', int, 'snapshot'), 'total_bytes', 'snapshot'),
            sites=_parse_sites(data),
            metadata=metadata,
        )

    return ProfileSnapshot(
        timestamp=timestamp,
        total_captured=_non_negative(_require(data, 'total_samples', int, 'snapshot'), 'total_samples', 'snapshot'),
        entries=_parse_entries(data),
        metadata=metadata,
    )


def save_snapshot(snapshot: Snapshot, filename: Union[str, Path]) -> str:
    """
    Save a snapshot to a JSON file, creating parent directories.

    Args:
        snapshot: ProfileSnapshot or AllocationSnapshot
        filename: Output path

    Returns:
        Path to output file
    """
    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Encode first: a failed encode must not truncate an existing file
    text = json.dumps(snapshot_to_dict(snapshot), indent=4)
    output_path.write_text(text)

    count = len(snapshot.entries)
    logger.info(f"Saved snapshot to {output_path} ({snapshot.total_captured} captured, {count} locations)")
    return str(output_path)


def load_snapshot(filename: Union[str, Path]) -> Snapshot:
    """
    Load a snapshot of either kind from a JSON file.

    Raises:
        SnapshotNotFoundError: The file does not exist
        MalformedSnapshotError: The file is not a valid snapshot
    """
    path = Path(filename)
    if not path.is_file():
        raise SnapshotNotFoundError(f"Profile file not found: {path}", path=str(path))

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedSnapshotError(f"Could not parse {path}: {e}", path=str(path)) from e

    try:
        snapshot = snapshot_from_dict(data)
    except MalformedSnapshotError as e:
        raise MalformedSnapshotError(f"{path}: {e}", path=str(path)) from e

    logger.info(f"Loaded snapshot from {path}")
    return snapshot


def load_profile(filename: Union[str, Path]) -> ProfileSnapshot:
    """Load a ProfileSnapshot, rejecting allocation snapshots."""
    snapshot = load_snapshot(filename)
    if not isinstance(snapshot, ProfileSnapshot):
        raise MalformedSnapshotError(f"{filename} is not a sample profile", path=str(filename))
    return snapshot


def load_allocations(filename: Union[str, Path]) -> AllocationSnapshot:
    """Load an AllocationSnapshot, rejecting sample profiles."""
    snapshot = load_snapshot(filename)
    if not isinstance(snapshot, AllocationSnapshot):
        raise MalformedSnapshotError(f"{filename} is not an allocation profile", path=str(filename))
    return snapshot


class BenchmarkStore:
    """
    Named snapshots stored as <save_dir>/<name>.json for tracking
    optimizations over time.
    """

    def __init__(self, save_dir: Union[str, Path] = 'benchmarks'):
        """
        Initialize the benchmark store.

        Args:
            save_dir: Directory holding benchmark files
        """
        self.save_dir = Path(save_dir)
        self.logger = logging.getLogger(__name__)

    def path_for(self, name: str) -> Path:
        return self.save_dir / f"{name}.json"

    def save(self, name: str, snapshot: Snapshot) -> Snapshot:
        """
        Store a snapshot under a benchmark name.

        The stored snapshot carries benchmark_name and benchmark_dir metadata.

        Returns:
            The stored snapshot
        """
        metadata = metadata_dict(snapshot)
        metadata.update({'benchmark_name': name, 'benchmark_dir': str(self.save_dir)})

        if isinstance(snapshot, AllocationSnapshot):
            stored = AllocationSnapshot(snapshot.timestamp, snapshot.total_allocations,
                                        snapshot.total_bytes, snapshot.sites, metadata)
        else:
            stored = ProfileSnapshot(snapshot.timestamp, snapshot.total_captured,
                                     snapshot.entries, metadata)

        save_snapshot(stored, self.path_for(name))
        self.logger.info(f"Stored benchmark {name!r}")
        return stored

    def load(self, name: str) -> Snapshot:
        """
        Load a benchmark by name.

        Raises:
            SnapshotNotFoundError: No benchmark with that name
        """
        path = self.path_for(name)
        if not path.is_file():
            raise SnapshotNotFoundError(f"Benchmark not found: {path}", path=str(path))
        return load_snapshot(path)

    def list(self) -> List[str]:
        """Names of stored benchmarks, sorted."""
        if not self.save_dir.is_dir():
            return []
        return sorted(p.stem for p in self.save_dir.glob('*.json'))

    def compare(self, name1: str, name2: str) -> SnapshotDiff:
        """Diff benchmark name1 (baseline) against name2."""
        return diff_snapshots(self.load(name1), self.load(name2))

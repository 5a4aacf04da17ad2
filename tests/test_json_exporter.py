# tests/test_json_exporter.py - Tests for JSON persistence
"""
Unit tests for snapshot saving, loading and benchmarks.
"""

import json
import pytest
from datetime import datetime

from profiling_analysis.collector.aggregator import aggregate_allocations, aggregate_samples
from profiling_analysis.collector.frames import INVALID_FRAME, AllocationEvent, Frame
from profiling_analysis.exceptions import MalformedSnapshotError, SnapshotNotFoundError
from profiling_analysis.exporters.json_exporter import (
    BenchmarkStore,
    load_allocations,
    load_profile,
    load_snapshot,
    save_snapshot,
    snapshot_to_dict,
)


def sample_snapshot(metadata=None):
    frames = [Frame("solve", "solver.py", 10)] * 3 + [Frame("read", "io.py", 2), INVALID_FRAME]
    return aggregate_samples(frames, metadata=metadata, timestamp=datetime(2024, 5, 1, 12, 30))


class TestSaveLoad:
    """Test cases for save_snapshot / load_snapshot"""

    def test_round_trip(self, tmp_path):
        snapshot = sample_snapshot(metadata={'run': 1})
        path = save_snapshot(snapshot, tmp_path / "profile.json")

        loaded = load_snapshot(path)

        assert loaded == snapshot
        assert loaded.metadata['run'] == 1

    def test_file_layout(self, tmp_path):
        path = save_snapshot(sample_snapshot(), tmp_path / "nested" / "profile.json")

        with open(path) as f:
            data = json.load(f)

        assert data['total_samples'] == 5
        assert data['timestamp'] == "2024-05-01T12:30:00"
        assert data['entries'][0] == {
            'func': 'solve', 'file': 'solver.py', 'line': 10, 'samples': 3, 'percentage': 60.0
        }

    def test_allocation_round_trip(self, tmp_path):
        events = [AllocationEvent(100, Frame("f", "a.py", 1)), AllocationEvent(300, Frame("f", "a.py", 1))]
        snapshot = aggregate_allocations(events, timestamp=datetime(2024, 1, 1))
        path = save_snapshot(snapshot, tmp_path / "alloc.json")

        data = snapshot_to_dict(snapshot)
        assert data['sites'][0]['avg_bytes'] == pytest.approx(200.0)

        loaded = load_allocations(path)
        assert loaded == snapshot

    def test_failed_save_keeps_existing_file(self, tmp_path):
        """A snapshot that cannot be encoded leaves the previous file loadable"""
        path = tmp_path / "profile.json"
        save_snapshot(sample_snapshot(), path)

        with pytest.raises(TypeError):
            save_snapshot(sample_snapshot(metadata={'when': datetime.now()}), path)

        assert load_snapshot(path) == sample_snapshot()

    def test_failed_benchmark_save_keeps_existing_benchmark(self, tmp_path):
        store = BenchmarkStore(tmp_path)
        store.save("baseline", sample_snapshot())

        with pytest.raises(TypeError):
            store.save("baseline", sample_snapshot(metadata={'when': datetime.now()}))

        assert store.load("baseline").total_captured == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotNotFoundError):
            load_snapshot(tmp_path / "missing.json")

    def test_missing_file_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(MalformedSnapshotError):
            load_snapshot(path)

    @pytest.mark.parametrize("data", [
        [],
        {'timestamp': '2024-01-01T00:00:00', 'entries': []},
        {'timestamp': 'yesterday', 'total_samples': 1, 'entries': []},
        {'timestamp': '2024-01-01T00:00:00', 'total_samples': 1,
         'entries': [{'func': 'f', 'file': 'a.py', 'line': 1, 'samples': 'many', 'percentage': 1.0}]},
        {'timestamp': '2024-01-01T00:00:00', 'total_samples': 1,
         'entries': [{'func': 'f', 'file': 'a.py', 'line': 1, 'samples': 5, 'percentage': 500.0}]},
        {'timestamp': '2024-01-01T00:00:00', 'total_samples': -1, 'entries': []},
    ])
    def test_schema_violations(self, tmp_path, data):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data))

        with pytest.raises(MalformedSnapshotError):
            load_snapshot(path)

    def test_kind_checked_loaders(self, tmp_path):
        path = save_snapshot(sample_snapshot(), tmp_path / "profile.json")

        assert load_profile(path).total_captured == 5
        with pytest.raises(MalformedSnapshotError):
            load_allocations(path)


class TestBenchmarkStore:
    """Test cases for BenchmarkStore"""

    def test_save_and_load(self, tmp_path):
        store = BenchmarkStore(tmp_path / "benchmarks")
        store.save("baseline", sample_snapshot())

        loaded = store.load("baseline")

        assert loaded.metadata['benchmark_name'] == "baseline"
        assert loaded.metadata['benchmark_dir'] == str(tmp_path / "benchmarks")
        assert loaded.total_captured == 5

    def test_list(self, tmp_path):
        store = BenchmarkStore(tmp_path)
        assert store.list() == []

        store.save("zeta", sample_snapshot())
        store.save("alpha", sample_snapshot())

        assert store.list() == ["alpha", "zeta"]

    def test_missing_benchmark(self, tmp_path):
        with pytest.raises(SnapshotNotFoundError, match="Benchmark not found"):
            BenchmarkStore(tmp_path).load("nope")

    def test_compare(self, tmp_path):
        store = BenchmarkStore(tmp_path)
        store.save("before", sample_snapshot())
        store.save("after", aggregate_samples([Frame("solve", "solver.py", 10)]))

        diff = store.compare("before", "after")

        assert diff.total_decrease == -3
        assert diff.total_increase == 0

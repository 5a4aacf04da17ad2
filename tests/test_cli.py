# tests/test_cli.py - Tests for the command-line interface
"""
End-to-end tests for the click commands.
"""

import logging
import pytest
from datetime import datetime
from click.testing import CliRunner

from profiling_analysis.cli import EXIT_MALFORMED, EXIT_NOT_FOUND, EXIT_USAGE, cli
from profiling_analysis.collector.aggregator import aggregate_allocations, aggregate_samples
from profiling_analysis.collector.frames import AllocationEvent, Frame
from profiling_analysis.exporters.json_exporter import BenchmarkStore, save_snapshot


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging replaces root handlers; put them back after each test"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def write_profile(path, frames=None):
    if frames is None:
        frames = (
            [Frame("solve_matrix", "/app/solver.py", 10)] * 6
            + [Frame("json_dumps", "/app/encode.py", 3)] * 2
            + [Frame("loads", "/usr/lib/python3.11/json/decoder.py", 337)] * 2
        )
    save_snapshot(aggregate_samples(frames, timestamp=datetime(2024, 1, 1)), path)
    return str(path)


class TestCli:
    """Test cases for the CLI"""

    def test_no_command_shows_help(self):
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 0
        assert "Profile Analysis Tool" in result.output

    def test_query_hides_system_code_by_default(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["query", "--input", path])

        assert result.exit_code == 0
        assert "solve_matrix @ /app/solver.py:10" in result.output
        assert "decoder.py" not in result.output

    def test_query_include_system(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["query", "--input", path, "--include-system"])

        assert "decoder.py" in result.output

    def test_query_filters_combine(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["query", "--input", path, "--file", "/app/", "--min-pct", "30"])

        assert "solve_matrix" in result.output
        assert "json_dumps" not in result.output

    def test_query_regex(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["query", "--input", path, "--regex", "^json_"])

        assert "json_dumps" in result.output
        assert "solve_matrix" not in result.output

    def test_query_invalid_regex_is_usage_error(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["query", "--input", path, "--regex", "(unclosed"])

        assert result.exit_code == 2

    def test_missing_input(self, tmp_path):
        result = CliRunner().invoke(cli, ["query", "--input", str(tmp_path / "missing.json")])

        assert result.exit_code == EXIT_NOT_FOUND
        assert "Profile file not found" in result.output

    def test_malformed_input(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[1, 2")

        result = CliRunner().invoke(cli, ["summary", "--input", str(path)])

        assert result.exit_code == EXIT_MALFORMED

    def test_summary_with_categories(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["summary", "--input", path, "--categories"])

        assert result.exit_code == 0
        assert "Total samples: 10" in result.output
        assert "Categorized Hotspots" in result.output
        assert "Numeric: 6 samples (60.0%)" in result.output
        assert "Optimization Suggestions" in result.output

    def test_summary_allocation_snapshot(self, tmp_path):
        snapshot = aggregate_allocations([AllocationEvent(512, Frame("grow", "/app/buf.py", 4))])
        path = save_snapshot(snapshot, tmp_path / "alloc.json")

        result = CliRunner().invoke(cli, ["summary", "--input", path, "--categories"])

        assert result.exit_code == 0
        assert "Total allocations: 1" in result.output
        assert "Many small allocations detected" in result.output

    def test_compare_files(self, tmp_path):
        before = write_profile(tmp_path / "before.json")
        after = write_profile(tmp_path / "after.json", [Frame("solve_matrix", "/app/solver.py", 10)] * 2)

        result = CliRunner().invoke(cli, ["compare", before, after])

        assert result.exit_code == 0
        assert "Total sample changes: 0 (increases), -8 (decreases)" in result.output

    def test_compare_benchmarks(self, tmp_path):
        store = BenchmarkStore(tmp_path / "bench")
        store.save("baseline", aggregate_samples([Frame("f", "a.py", 1)]))
        store.save("optimized", aggregate_samples([Frame("f", "a.py", 1)] * 3))

        result = CliRunner().invoke(
            cli, ["compare", "--benchmarks", "--dir", str(tmp_path / "bench"), "baseline", "optimized"]
        )

        assert result.exit_code == 0
        assert "2 (increases)" in result.output

    def test_compare_missing_benchmark(self, tmp_path):
        result = CliRunner().invoke(cli, ["compare", "--benchmarks", "--dir", str(tmp_path), "a", "b"])

        assert result.exit_code == EXIT_NOT_FOUND

    def test_export_csv_to_file(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")
        output = tmp_path / "out" / "hotspots.csv"

        result = CliRunner().invoke(cli, ["export", "--input", path, "--output", str(output)])

        assert result.exit_code == 0
        lines = output.read_text().splitlines()
        assert lines[0] == "Rank,Function,File,Line,Samples,Percentage"
        assert lines[1] == '1,"solve_matrix","/app/solver.py",10,6,60.0'

    def test_export_markdown_with_recommendations(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["export", "--input", path, "--format", "markdown", "--recommendations"])

        assert result.exit_code == 0
        assert "# Profile Analysis Report" in result.output
        assert "## Recommendations" in result.output

    def test_export_prometheus(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")

        result = CliRunner().invoke(cli, ["export", "--input", path, "--format", "prometheus"])

        assert result.exit_code == 0
        assert 'profiling_analysis_total_samples{snapshot="profile"} 10.0' in result.output

    def test_benchmarks_list(self, tmp_path):
        store = BenchmarkStore(tmp_path)
        store.save("baseline", aggregate_samples([Frame("f", "a.py", 1)]))

        result = CliRunner().invoke(cli, ["benchmarks", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "baseline" in result.output

    def test_query_include_system_from_config(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")
        config = tmp_path / "config.yaml"
        config.write_text("analysis:\n  include_system: true\n")

        result = CliRunner().invoke(cli, ["--config", str(config), "query", "--input", path])

        assert "decoder.py" in result.output

    def test_query_hides_entries_below_noise_threshold(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")
        config = tmp_path / "config.yaml"
        config.write_text("analysis:\n  noise_min_percentage: 25.0\n")

        result = CliRunner().invoke(cli, ["--config", str(config), "query", "--input", path])

        assert "solve_matrix" in result.output
        assert "json_dumps" not in result.output

    def test_categories_mapping_in_config_is_usage_error(self, tmp_path):
        path = write_profile(tmp_path / "profile.json")
        config = tmp_path / "config.yaml"
        config.write_text("categories:\n  alg: [matrix]\n  io: [read]\n")

        result = CliRunner().invoke(cli, ["--config", str(config), "summary", "--input", path, "--categories"])

        assert result.exit_code == EXIT_USAGE
        assert "invalid configuration" in result.output

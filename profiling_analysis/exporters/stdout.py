# profiling_analysis/exporters/stdout.py - Console output exporter
"""
Prints snapshots, comparisons and recommendations to stdout in a
human-readable format.
"""

from typing import List, Sequence
from colorama import Fore, Style, init
import logging

from profiling_analysis.utils.helpers import format_bytes, format_signed, location_string, truncate


# Initialize colorama
init(autoreset=True)


class StdoutExporter:
    """
    Prints profiling results to stdout with colored output.
    """

    def __init__(self, use_colors: bool = True, max_width: int = 120):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
            max_width: Line width for tables
        """
        self.use_colors = use_colors
        self.max_width = max_width
        self.logger = logging.getLogger(__name__)

    def _color(self, color: str) -> str:
        return color if self.use_colors else ""

    def _reset(self) -> str:
        return Style.RESET_ALL if self.use_colors else ""

    def _header(self, title: str):
        print(f"\n{self._color(Fore.CYAN)}{'='*80}{self._reset()}")
        print(f"{self._color(Fore.CYAN)}{title}{self._reset()}")
        print(f"{self._color(Fore.CYAN)}{'='*80}{self._reset()}\n")

    def print_entries(self, entries: Sequence):
        """
        Print profile entries as a ranked table.

        Args:
            entries: ProfileEntry objects
        """
        if not entries:
            print("No entries found.")
            return

        print(f"{'Rank':<5} {'Samples':<10} {'% Total':<8} Function @ File:Line")
        print("-" * self.max_width)

        for rank, entry in enumerate(entries, 1):
            location = truncate(location_string(entry), self.max_width - 30)
            color = self._get_color_for_percentage(entry.percentage)
            print(f"{rank:<5} {entry.sample_count:<10} "
                  f"{color}{entry.percentage:<8.2f}{self._reset()} {location}")

    def print_allocation_sites(self, sites: Sequence):
        """
        Print allocation sites as a ranked table.

        Args:
            sites: AllocationSite objects
        """
        if not sites:
            print("No allocation sites found.")
            return

        print(f"{'Rank':<5} {'Count':<10} {'Total Bytes':<12} {'Avg Bytes':<10} Function @ File:Line")
        print("-" * self.max_width)

        for rank, site in enumerate(sites, 1):
            location = truncate(location_string(site), self.max_width - 45)
            print(f"{rank:<5} {site.count:<10} {format_bytes(site.total_bytes):<12} "
                  f"{format_bytes(round(site.avg_bytes)):<10} {location}")

    def print_summary(self, snapshot, entries: Sequence = None, top_n: int = 20,
                      title: str = "Profile Summary"):
        """
        Print a snapshot summary followed by its top entries.

        Args:
            snapshot: ProfileSnapshot
            entries: Filtered entries to show (default: all)
            top_n: Number of entries to show
            title: Section title
        """
        self._header(title)
        print(f"Timestamp: {snapshot.timestamp.isoformat()}")
        print(f"Total samples: {snapshot.total_captured}")
        print(f"Unique locations: {len(snapshot.entries)}")

        if entries is None:
            entries = snapshot.entries
        else:
            filtered = sum(e.sample_count for e in entries)
            pct = 100.0 * filtered / snapshot.total_captured if snapshot.total_captured else 0.0
            print(f"Filtered samples: {filtered} / {snapshot.total_captured} ({pct:.2f}%)")

        self._header(f"Top {top_n} Hotspots")
        self.print_entries(list(entries[:top_n]))
        print()

    def print_allocation_summary(self, snapshot, top_n: int = 20):
        """
        Print an allocation snapshot summary followed by its top sites.
        """
        self._header("Allocation Summary")
        print(f"Timestamp: {snapshot.timestamp.isoformat()}")
        print(f"Total allocations: {snapshot.total_allocations}")
        print(f"Total bytes: {format_bytes(snapshot.total_bytes)}")
        print(f"Unique sites: {len(snapshot.sites)}")

        self._header(f"Top {top_n} Allocation Sites")
        self.print_allocation_sites(snapshot.sites[:top_n])
        print()

    def print_diff(self, diff, before, after, top_n: int = 20):
        """
        Print a snapshot comparison.

        Args:
            diff: SnapshotDiff
            before: Baseline snapshot
            after: Comparison snapshot
            top_n: Number of changes to show
        """
        self._header("Profile Comparison")
        print(f"Profile 1: {before.timestamp.isoformat()} ({before.total_captured} samples)")
        print(f"Profile 2: {after.timestamp.isoformat()} ({after.total_captured} samples)")

        self._header(f"Top {top_n} Changes (by absolute sample difference)")
        if not diff.records:
            print("No changes found.")
        else:
            print(f"{'Rank':<5} {'Δ Samples':<10} {'Δ %':<10} Function @ File:Line")
            print("-" * 80)

            for rank, record in enumerate(diff.top(top_n), 1):
                color = Fore.RED if record.delta_count > 0 else Fore.GREEN
                location = truncate(location_string(record), 60)
                print(f"{rank:<5} {self._color(color)}{format_signed(record.delta_count):<10} "
                      f"{format_signed(record.delta_percentage, 2):<10}{self._reset()} {location}")

        print()
        print(f"{self._color(Fore.YELLOW)}Summary:{self._reset()}")
        print(f"  Total sample changes: {diff.total_increase} (increases), {diff.total_decrease} (decreases)")
        print()

    def print_categorized(self, stats: Sequence, min_percentage: float = 5.0, per_category: int = 3):
        """
        Print categorized hotspots.

        Args:
            stats: CategoryStats list
            min_percentage: Hide categories below this share
            per_category: Entries listed under each category
        """
        self._header("Categorized Hotspots")

        shown = [s for s in stats if s.entries and s.percentage >= min_percentage]
        shown.sort(key=lambda s: -s.percentage)

        if not shown:
            print(f"No category reaches {min_percentage:.1f}% of samples.")

        for cat in shown:
            print(f"{self._color(Fore.YELLOW)}{cat.display_name}: {cat.sample_count} samples "
                  f"({cat.percentage:.1f}%){self._reset()}")
            for entry in cat.entries[:per_category]:
                print(f"  - {entry.function} @ {entry.file.rsplit('/', 1)[-1]}:{entry.line} "
                      f"- {entry.sample_count} samples")
            print()

    def print_recommendations(self, recommendations: List[str]):
        """
        Print recommendation lines.

        Args:
            recommendations: Lines from a RecommendationGenerator
        """
        if not recommendations:
            return

        self._header("Optimization Suggestions")
        for line in recommendations:
            print(f"{self._color(Fore.GREEN)}{line}{self._reset()}")
        print()

    def _get_color_for_percentage(self, percentage: float) -> str:
        """
        Get color based on share of samples.

        Args:
            percentage: Entry percentage

        Returns:
            Color code
        """
        if not self.use_colors:
            return ""

        if percentage >= 10:
            return Fore.RED
        elif percentage >= 2:
            return Fore.YELLOW
        else:
            return Fore.GREEN

# profiling_analysis/analyzer/report_generator.py - Report generation
"""
Generates CSV, Markdown and plain-text reports from snapshots.
"""

from typing import List, Optional, Sequence
from datetime import datetime
import csv
import io
import os
import logging

from profiling_analysis.analyzer.query import top_n as take_top
from profiling_analysis.utils.helpers import format_bytes, format_signed, truncate


def _write_csv(header: List[str], rows) -> str:
    """
    Header unquoted, then rows with every string field quoted.
    """
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(header)
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def _md_code(text: str) -> str:
    """Inline code cell safe for a Markdown table row."""
    text = text.replace("|", "\\|")
    if "`" in text:
        return f"`` {text} ``"
    return f"`{text}`"


class ReportGenerator:
    """
    Generates reports from snapshots in various formats.
    """

    def __init__(self, tool_name: str = "profiling-analysis"):
        """
        Initialize the report generator.

        Args:
            tool_name: Name printed in report footers
        """
        self.tool_name = tool_name
        self.logger = logging.getLogger(__name__)

    def generate_csv(self, entries: Sequence) -> str:
        """
        Generate CSV for profile entries.

        Args:
            entries: Snapshot or sequence of ProfileEntry

        Returns:
            CSV string with header Rank,Function,File,Line,Samples,Percentage
        """
        entries = getattr(entries, 'entries', entries)
        rows = [
            (rank, entry.function, entry.file, entry.line, entry.sample_count, float(entry.percentage))
            for rank, entry in enumerate(entries, 1)
        ]
        return _write_csv(["Rank", "Function", "File", "Line", "Samples", "Percentage"], rows)

    def generate_allocation_csv(self, sites: Sequence) -> str:
        """
        Generate CSV for allocation sites.

        Args:
            sites: Snapshot or sequence of AllocationSite

        Returns:
            CSV string with header Rank,Function,File,Line,Count,TotalBytes,AvgBytes
        """
        sites = getattr(sites, 'sites', sites)
        rows = [
            (rank, site.function, site.file, site.line, site.count, site.total_bytes, float(site.avg_bytes))
            for rank, site in enumerate(sites, 1)
        ]
        return _write_csv(["Rank", "Function", "File", "Line", "Count", "TotalBytes", "AvgBytes"], rows)

    def generate_markdown_report(self, snapshot, entries: Optional[Sequence] = None,
                                 top_n: int = 20, include_summary: bool = True,
                                 recommendations: Optional[List[str]] = None,
                                 generated_at: Optional[datetime] = None) -> str:
        """
        Generate a Markdown report.

        Args:
            snapshot: ProfileSnapshot the report describes
            entries: Filtered entries to show (default: all snapshot entries)
            top_n: Number of table rows
            include_summary: Include the summary section
            recommendations: Optional recommendation lines
            generated_at: Report time (default: now)

        Returns:
            Markdown formatted report
        """
        filtered = entries is not None
        entries = list(snapshot.entries if entries is None else entries)
        display = take_top(entries, top_n)
        generated_at = generated_at or datetime.now()

        lines = []
        lines.append("# Profile Analysis Report")
        lines.append("")
        lines.append(f"**Generated:** {generated_at.isoformat(timespec='seconds')}")
        lines.append(f"**Profile Timestamp:** {snapshot.timestamp.isoformat()}")
        lines.append("")

        if include_summary:
            lines.append("## Summary")
            lines.append("")
            lines.append(f"- **Total Samples:** {snapshot.total_captured}")
            lines.append(f"- **Unique Locations:** {len(snapshot.entries)}")
            if filtered:
                samples = sum(e.sample_count for e in entries)
                pct = 100.0 * samples / snapshot.total_captured if snapshot.total_captured else 0.0
                lines.append(f"- **Filtered Samples:** {samples} ({pct:.1f}%)")
            lines.append("")

        lines.append(f"## Top {top_n} Hotspots")
        lines.append("")
        lines.append("| Rank | Function | File:Line | Samples | % Time |")
        lines.append("|------|----------|-----------|---------|--------|")

        for rank, entry in enumerate(display, 1):
            func_short = truncate(entry.function, 40)
            location = f"{os.path.basename(entry.file)}:{entry.line}"
            lines.append(
                f"| {rank} | {_md_code(func_short)} | {_md_code(location)} | {entry.sample_count} | {entry.percentage:.2f}% |"
            )
        lines.append("")

        if recommendations is not None:
            lines.append("## Recommendations")
            lines.append("")
            if recommendations:
                lines.extend(recommendations)
            else:
                lines.append("No specific recommendations generated.")
            lines.append("")

        lines.append("---")
        lines.append("")
        lines.append(f"*Generated by {self.tool_name}*")

        return "\n".join(lines) + "\n"

    def generate_text_summary(self, snapshot, entries: Optional[Sequence] = None,
                              top_n: int = 20, title: str = "Profile Summary") -> str:
        """
        Generate a plain-text summary.

        Args:
            snapshot: ProfileSnapshot
            entries: Filtered entries to list (default: all snapshot entries)
            top_n: Number of entries listed
            title: Section title

        Returns:
            Formatted text
        """
        entries = list(snapshot.entries if entries is None else entries)

        lines = []
        lines.append("=" * 80)
        lines.append(title)
        lines.append("=" * 80)
        lines.append(f"Timestamp: {snapshot.timestamp.isoformat()}")
        lines.append(f"Total samples: {snapshot.total_captured}")
        lines.append(f"Unique locations: {len(snapshot.entries)}")
        lines.append("")

        lines.append(f"{'Rank':<5} {'Samples':<10} {'% Total':<8} Function @ File:Line")
        lines.append("-" * 80)
        for rank, entry in enumerate(take_top(entries, top_n), 1):
            location = truncate(f"{entry.function} @ {entry.file}:{entry.line}", 90)
            lines.append(f"{rank:<5} {entry.sample_count:<10} {entry.percentage:<8.2f} {location}")

        return "\n".join(lines) + "\n"

    def generate_allocation_summary(self, snapshot, top_n: int = 20) -> str:
        """
        Generate a plain-text allocation summary.
        """
        lines = []
        lines.append("=" * 80)
        lines.append("Allocation Summary")
        lines.append("=" * 80)
        lines.append(f"Timestamp: {snapshot.timestamp.isoformat()}")
        lines.append(f"Total allocations: {snapshot.total_allocations}")
        lines.append(f"Total bytes: {format_bytes(snapshot.total_bytes)}")
        lines.append(f"Unique sites: {len(snapshot.sites)}")
        lines.append("")

        lines.append(f"{'Rank':<5} {'Count':<10} {'Total Bytes':<12} {'Avg Bytes':<10} Function @ File:Line")
        lines.append("-" * 80)
        for rank, site in enumerate(snapshot.sites[:top_n], 1):
            location = truncate(f"{site.function} @ {site.file}:{site.line}", 75)
            lines.append(
                f"{rank:<5} {site.count:<10} {format_bytes(site.total_bytes):<12} "
                f"{format_bytes(round(site.avg_bytes)):<10} {location}"
            )

        return "\n".join(lines) + "\n"

    def generate_diff_summary(self, diff, top_n: int = 20) -> str:
        """
        Generate a plain-text comparison report.

        Args:
            diff: SnapshotDiff
            top_n: Number of changes listed
        """
        lines = []
        lines.append(f"Top {top_n} Changes (by absolute sample difference)")
        lines.append("-" * 80)
        lines.append(f"{'Rank':<5} {'Δ Samples':<10} {'Δ %':<10} Function @ File:Line")

        for rank, record in enumerate(diff.top(top_n), 1):
            location = truncate(f"{record.function} @ {record.file}:{record.line}", 60)
            lines.append(
                f"{rank:<5} {format_signed(record.delta_count):<10} "
                f"{format_signed(record.delta_percentage, 2):<10} {location}"
            )

        lines.append("")
        lines.append(
            f"Total sample changes: {diff.total_increase} (increases), {diff.total_decrease} (decreases)"
        )
        return "\n".join(lines) + "\n"

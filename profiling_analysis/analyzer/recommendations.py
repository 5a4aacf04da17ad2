# profiling_analysis/analyzer/recommendations.py - Optimization recommendations
"""
Turns categorized hotspots into threshold-triggered advice.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import logging

from profiling_analysis.analyzer.categorizer import summarize
from profiling_analysis.analyzer.static_analysis import IssueReport, sort_by_severity
from profiling_analysis.utils.helpers import format_bytes, short_location


DEFAULT_THRESHOLD = 10.0

NO_BOTTLENECK_MESSAGE = "No major bottlenecks detected. Code appears well-optimized."


class RecommendationGenerator:
    """
    Generates advisory text for categories whose share of samples meets a
    threshold.

    Both the thresholds and the advisory blocks are supplied by the caller,
    usually from configuration.
    """

    def __init__(self, advisories: Mapping[str, Sequence[str]],
                 thresholds: Optional[Mapping[str, float]] = None,
                 default_threshold: float = DEFAULT_THRESHOLD,
                 no_bottleneck: Optional[str] = None):
        """
        Initialize the recommendation generator.

        Args:
            advisories: Category name to advisory lines. Lines may use a
                {percentage} placeholder.
            thresholds: Category name to minimum percentage
            default_threshold: Threshold for categories missing from thresholds
            no_bottleneck: Message emitted when no category triggers
        """
        self.advisories: Dict[str, List[str]] = {k: list(v) for k, v in advisories.items()}
        self.thresholds: Dict[str, float] = dict(thresholds or {})
        self.default_threshold = default_threshold
        self.no_bottleneck = no_bottleneck or NO_BOTTLENECK_MESSAGE
        self.logger = logging.getLogger(__name__)

    def threshold_for(self, category: str) -> float:
        return self.thresholds.get(category, self.default_threshold)

    def triggered(self, buckets: Mapping[str, Sequence], total_captured: int) -> List[str]:
        """
        Names of categories meeting their threshold, in bucket order.

        A category with no entries never triggers, even with a threshold of
        0, and nothing triggers for an empty snapshot.
        """
        if total_captured <= 0:
            return []

        names = []
        for stats in summarize(buckets, total_captured):
            if stats.name not in self.advisories or not stats.entries:
                continue
            if stats.percentage >= self.threshold_for(stats.name):
                names.append(stats.name)
        return names

    def generate(self, buckets: Mapping[str, Sequence], total_captured: int) -> List[str]:
        """
        Generate recommendations for a categorization.

        Args:
            buckets: Result of Categorizer.categorize (ordered)
            total_captured: Snapshot total_captured

        Returns:
            Advisory lines, or the single no-bottleneck message
        """
        triggered = set(self.triggered(buckets, total_captured))
        if not triggered:
            return [self.no_bottleneck]

        recommendations = []
        for stats in summarize(buckets, total_captured):
            if stats.name not in triggered:
                continue
            for line in self.advisories[stats.name]:
                recommendations.append(line.format(percentage=round(stats.percentage, 1)))

        self.logger.debug(f"Generated recommendations for: {', '.join(sorted(triggered))}")
        return recommendations


def merge_issues(recommendations: List[str], results: Iterable) -> List[str]:
    """
    Append static analyzer findings to generated recommendations.

    Args:
        recommendations: Lines from RecommendationGenerator.generate
        results: IssueReport or Unavailable results; Unavailable ones are skipped

    Returns:
        New list of lines
    """
    merged = list(recommendations)
    for result in results:
        if not isinstance(result, IssueReport) or result.clean:
            continue
        merged.append(f"{result.analyzer} reported {len(result.issues)} issue(s):")
        for issue in sort_by_severity(result.issues):
            line = f"   [{issue.severity}] {issue.function} @ {issue.file}:{issue.line}: {issue.description}"
            if issue.recommendation:
                line += f" -> {issue.recommendation}"
            merged.append(line)
    return merged


def analyze_allocation_patterns(snapshot, package_patterns: Sequence[str] = (),
                                small_allocation_bytes: int = 1000,
                                large_site_bytes: int = 1_000_000) -> List[str]:
    """
    Analyze allocation sites and suggest optimizations.

    Args:
        snapshot: AllocationSnapshot
        package_patterns: File substrings identifying the project's own code
        small_allocation_bytes: Average size under which allocations count as small
        large_site_bytes: Total bytes above which a site counts as large

    Returns:
        Recommendation lines
    """
    sites = snapshot.sites
    if not sites:
        return ["No significant allocations detected"]

    recommendations = []
    total_bytes = sum(s.total_bytes for s in sites)
    total_count = sum(s.count for s in sites)

    if package_patterns and total_bytes:
        package_sites = [s for s in sites if any(p in s.file for p in package_patterns)]
        package_bytes = sum(s.total_bytes for s in package_sites)
        package_pct = 100.0 * package_bytes / total_bytes
        if package_pct > 50:
            recommendations.append(f"Package code allocates {package_pct:.1f}% of total memory")
            recommendations.append("   -> Focus optimization on top package allocation sites")

    avg_bytes = total_bytes / total_count
    if avg_bytes < small_allocation_bytes:
        recommendations.append(f"Many small allocations detected (avg {format_bytes(round(avg_bytes))})")
        recommendations.append("   -> Consider object pooling or pre-allocation strategies")
        recommendations.append("   -> Look for allocations in hot inner loops")

    large_sites = [s for s in sites if s.total_bytes > large_site_bytes]
    if large_sites:
        recommendations.append("Large allocation sites detected:")
        for site in large_sites[:3]:
            recommendations.append(f"   -> {short_location(site)} - {format_bytes(site.total_bytes)}")

    if not recommendations:
        recommendations.append("Allocation profile looks reasonable")

    return recommendations

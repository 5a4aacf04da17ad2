# profiling_analysis/analyzer/static_analysis.py - Optional static analyzers
"""
Integration point for optional static analyzers (type checkers, import-time
or compilation-latency analyzers and similar tools).

Analyzers are injected strategies. Whether a tool is installed is an
explicit availability() query answered per analyzer, and the outcome of a
run is either an Unavailable result or an IssueReport. Nothing here loads
tools dynamically or caches availability globally.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from profiling_analysis.exceptions import InvalidArgumentError


SEVERITIES = ('critical', 'high', 'medium', 'low')


def severity_rank(severity: str) -> int:
    """Numeric rank for a severity, lower is more severe."""
    try:
        return SEVERITIES.index(severity)
    except ValueError:
        return len(SEVERITIES)


@dataclass(frozen=True)
class AnalysisIssue:
    """
    A single issue reported by a static analyzer.
    """
    type: str
    severity: str
    function: str
    file: str
    line: int
    description: str
    recommendation: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisIssue':
        return cls(
            type=str(data.get('type', 'unknown')),
            severity=str(data.get('severity', 'low')),
            function=str(data.get('function', '')),
            file=str(data.get('file', '')),
            line=int(data.get('line', 0)),
            description=str(data.get('description', '')),
            recommendation=str(data.get('recommendation', '')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'severity': self.severity,
            'function': self.function,
            'file': self.file,
            'line': self.line,
            'description': self.description,
            'recommendation': self.recommendation,
        }


@dataclass(frozen=True)
class Availability:
    """Answer to an analyzer availability query."""
    available: bool
    reason: str = ""

    def __bool__(self):
        return self.available


@dataclass(frozen=True)
class Unavailable:
    """
    Non-fatal result: the analyzer is not installed or not usable here.
    """
    analyzer: str
    reason: str = ""


@dataclass
class IssueReport:
    """
    Issues produced by one analyzer run.
    """
    analyzer: str
    issues: List[AnalysisIssue]
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.issues

    def critical(self) -> List[AnalysisIssue]:
        return [i for i in self.issues if i.severity == 'critical']

    def high_priority(self) -> List[AnalysisIssue]:
        return [i for i in self.issues if i.severity in ('critical', 'high')]

    def group_by_type(self) -> Dict[str, List[AnalysisIssue]]:
        groups: Dict[str, List[AnalysisIssue]] = {}
        for issue in self.issues:
            groups.setdefault(issue.type, []).append(issue)
        return groups

    def group_by_file(self) -> Dict[str, List[AnalysisIssue]]:
        groups: Dict[str, List[AnalysisIssue]] = {}
        for issue in self.issues:
            groups.setdefault(issue.file, []).append(issue)
        return groups

    def summary(self) -> Dict[str, int]:
        """Issue count by type"""
        return {t: len(issues) for t, issues in self.group_by_type().items()}

    def sorted_by_severity(self) -> List[AnalysisIssue]:
        return sort_by_severity(self.issues)


AnalysisResult = Union[IssueReport, Unavailable]


def sort_by_severity(issues: Iterable[AnalysisIssue]) -> List[AnalysisIssue]:
    """Sort issues most severe first; stable within a severity."""
    return sorted(issues, key=lambda i: severity_rank(i.severity))


class StaticAnalyzer(ABC):
    """
    Strategy interface for an optional static analyzer.

    analyze() returns the issues it found; raising from analyze() means a
    genuine fault and propagates to the caller (see AnalyzerFault).
    """

    name: str = "analyzer"

    @abstractmethod
    def availability(self) -> Availability:
        """Report whether this analyzer can run in the current environment."""

    @abstractmethod
    def analyze(self, target: Any) -> List[AnalysisIssue]:
        """Analyze target and return the issues found."""


class AnalyzerContext:
    """
    Explicit capability object holding the analyzers available to a call.

    Contexts are independent of each other, so tests can configure different
    analyzer sets side by side.
    """

    def __init__(self, analyzers: Optional[Iterable[StaticAnalyzer]] = None):
        """
        Initialize the analyzer context.

        Args:
            analyzers: Analyzer strategies, keyed by their name
        """
        self.analyzers: Dict[str, StaticAnalyzer] = {}
        for analyzer in analyzers or ():
            self.analyzers[analyzer.name] = analyzer

        self.logger = logging.getLogger(__name__)

    def available(self) -> List[str]:
        """Names of analyzers reporting themselves available."""
        return [name for name, a in self.analyzers.items() if a.availability()]

    def run(self, name: str, target: Any) -> AnalysisResult:
        """
        Run one analyzer.

        Args:
            name: Analyzer name
            target: Object handed to the analyzer

        Returns:
            IssueReport, or Unavailable when the analyzer cannot run

        Raises:
            InvalidArgumentError: No analyzer with that name is configured
        """
        analyzer = self.analyzers.get(name)
        if analyzer is None:
            raise InvalidArgumentError(f"Unknown analyzer {name!r}", argument='name', value=name)

        availability = analyzer.availability()
        if not availability:
            self.logger.info(f"Analyzer {name} unavailable: {availability.reason}")
            return Unavailable(name, availability.reason)

        issues = list(analyzer.analyze(target))
        self.logger.info(f"Analyzer {name} reported {len(issues)} issues")
        return IssueReport(analyzer=name, issues=issues)

    def run_all(self, target: Any) -> List[AnalysisResult]:
        """Run every configured analyzer in registration order."""
        return [self.run(name, target) for name in self.analyzers]

# profiling_analysis/exceptions.py - Error types
"""
Exception types raised by the profiling analysis core.

Empty captures and discarded frames are not errors and never raise;
everything below propagates to the caller unchanged.
"""

from typing import Any, Optional


class ProfilingAnalysisError(Exception):
    """Base class for all profiling analysis errors."""


class SnapshotNotFoundError(ProfilingAnalysisError, FileNotFoundError):
    """
    Raised when a snapshot file or named benchmark does not exist.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class MalformedSnapshotError(ProfilingAnalysisError, ValueError):
    """
    Raised when persisted data cannot be parsed into the snapshot schema.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidArgumentError(ProfilingAnalysisError, ValueError):
    """
    Raised for unrecognized filter fields, combinator modes and similar
    programmer errors.
    """

    def __init__(self, message: str, argument: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.argument = argument
        self.value = value


class AnalyzerFault(ProfilingAnalysisError):
    """
    Raised by a static analyzer that is available but failed while running.
    """

    def __init__(self, message: str, analyzer: Optional[str] = None):
        super().__init__(message)
        self.analyzer = analyzer

# profiling_analysis/utils/helpers.py - Helper functions
"""
General formatting helpers shared by reports and console output.
"""

import os


def format_bytes(bytes_count: float) -> str:
    """
    Format bytes into human-readable string.

    Args:
        bytes_count: Number of bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    if bytes_count < 1024:
        return f"{int(bytes_count)} B"

    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0

    return f"{bytes_count:.1f} PB"


def format_signed(value: float, precision: int = 0) -> str:
    """
    Format a number with an explicit sign for positive values.

    Args:
        value: Number to format
        precision: Decimal places

    Returns:
        Formatted string (e.g., "+6", "-30.00")
    """
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{precision}f}"


def truncate(text: str, width: int) -> str:
    """Shorten text to width characters, ending with '...' when cut."""
    if width <= 3 or len(text) <= width:
        return text
    return text[:width - 3] + "..."


def location_string(entry) -> str:
    """Full 'function @ file:line' label for an entry or location."""
    return f"{entry.function} @ {entry.file}:{entry.line}"


def short_location(entry) -> str:
    """'function @ basename:line' label for an entry or location."""
    return f"{entry.function} @ {os.path.basename(entry.file)}:{entry.line}"

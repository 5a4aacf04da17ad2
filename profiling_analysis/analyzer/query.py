# profiling_analysis/analyzer/query.py - Snapshot query engine
"""
Filtering and search over a snapshot's entries.

Every function is pure: it accepts a snapshot (anything exposing
``entries``) or a plain sequence of entries and returns a new list that
preserves the original order.
"""

from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Union
import re

from profiling_analysis.exceptions import InvalidArgumentError


Predicate = Callable[[object], bool]

SUBSTRING_FIELDS = ('function', 'file', 'either')
REGEX_FIELDS = ('function', 'file', 'both')
COMBINE_MODES = ('and', 'or')


def _entries_of(source) -> Sequence:
    entries = getattr(source, 'entries', None)
    if entries is not None:
        return entries
    return list(source)


def top_n(snapshot, n: int, predicate: Optional[Predicate] = None) -> List:
    """
    Get the top N hotspots.

    Args:
        snapshot: Snapshot or sequence of entries, already sorted descending
        n: Number of entries to return
        predicate: Optional filter applied before truncation

    Returns:
        First min(n, len) matching entries
    """
    entries = _entries_of(snapshot)
    if predicate is not None:
        entries = [e for e in entries if predicate(e)]
    return list(entries[:max(n, 0)])


def by_substring(snapshot, text: str, field: str = 'either') -> List:
    """
    Get entries whose function name and/or file path contains text.

    Args:
        snapshot: Snapshot or sequence of entries
        text: Case-sensitive substring
        field: 'function', 'file' or 'either'

    Returns:
        Matching entries
    """
    if field == 'function':
        return [e for e in _entries_of(snapshot) if text in e.function]
    elif field == 'file':
        return [e for e in _entries_of(snapshot) if text in e.file]
    elif field == 'either':
        return [e for e in _entries_of(snapshot) if text in e.function or text in e.file]

    raise InvalidArgumentError(
        f"Unknown substring field {field!r}; expected one of {', '.join(SUBSTRING_FIELDS)}",
        argument='field', value=field
    )


def by_file(snapshot, file_pattern: str) -> List:
    return by_substring(snapshot, file_pattern, field='file')


def by_function(snapshot, func_pattern: str) -> List:
    return by_substring(snapshot, func_pattern, field='function')


def by_pattern(snapshot, pattern: str) -> List:
    """Entries where either the function or the file contains pattern."""
    return by_substring(snapshot, pattern, field='either')


def by_regex(snapshot, pattern: Union[str, Pattern], field: str = 'both') -> List:
    """
    Get entries matching a regular expression.

    The pattern is applied as-is with re.search; case sensitivity is a
    property of the pattern (e.g. ``(?i)``).

    Args:
        snapshot: Snapshot or sequence of entries
        pattern: Regex string or compiled pattern
        field: 'function', 'file' or 'both' (either field may match)

    Returns:
        Matching entries

    Raises:
        InvalidArgumentError: Unknown field or invalid pattern
    """
    if field not in REGEX_FIELDS:
        raise InvalidArgumentError(
            f"Unknown regex field {field!r}; expected one of {', '.join(REGEX_FIELDS)}",
            argument='field', value=field
        )

    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise InvalidArgumentError(f"Invalid regex {pattern!r}: {e}", argument='pattern', value=pattern) from e

    if field == 'function':
        return [e for e in _entries_of(snapshot) if regex.search(e.function)]
    elif field == 'file':
        return [e for e in _entries_of(snapshot) if regex.search(e.file)]
    return [e for e in _entries_of(snapshot) if regex.search(e.function) or regex.search(e.file)]


def by_predicate(snapshot, predicate: Predicate) -> List:
    """
    Get all entries matching a custom predicate.

    Example:
        by_predicate(snapshot, lambda e: e.sample_count > 100)
    """
    return [e for e in _entries_of(snapshot) if predicate(e)]


def combine(*predicates: Predicate, mode: str = 'and') -> Predicate:
    """
    Combine predicates into their conjunction or disjunction.

    Args:
        *predicates: Predicates to combine
        mode: 'and' or 'or'

    Returns:
        New predicate

    Raises:
        InvalidArgumentError: Unknown mode
    """
    if mode not in COMBINE_MODES:
        raise InvalidArgumentError(
            f"Unknown combine mode {mode!r}; expected 'and' or 'or'",
            argument='mode', value=mode
        )

    predicates = tuple(predicates)

    if mode == 'and':
        def combined(entry) -> bool:
            return all(p(entry) for p in predicates)
    else:
        def combined(entry) -> bool:
            return any(p(entry) for p in predicates)

    return combined


def negate(predicate: Predicate) -> Predicate:
    """Return the logical complement of predicate."""
    def negated(entry) -> bool:
        return not predicate(entry)
    return negated


def min_percentage(threshold: float) -> Predicate:
    """Predicate: entry percentage is at least threshold."""
    return lambda entry: entry.percentage >= threshold


def min_samples(threshold: int) -> Predicate:
    """Predicate: entry sample count is at least threshold."""
    return lambda entry: entry.sample_count >= threshold


def default_system_patterns() -> List[str]:
    """
    Return default patterns identifying interpreter and library code.
    """
    return [
        # Interpreter internals
        "<frozen ", "<built-in", "<string>", "importlib",
        "/lib/python3", "\\lib\\python3",

        # Third-party packages
        "site-packages", "dist-packages",

        # Native code
        "libc.so", "libm.so", "libpthread", "glibc", "ld-linux",

        # Profiler machinery
        "cProfile", "/profile.py", "/pstats.py", "threading.py",
    ]


def _stdlib_patterns() -> List[str]:
    return [
        "/json/", "/re/", "/collections/", "/asyncio/", "/concurrent/",
        "/logging/", "/email/", "/http/", "/unittest/", "/xml/",
        "/encodings/", "/typing.py", "/functools.py", "/copy.py",
    ]


def is_system_code(entry, system_patterns: Optional[Iterable[str]] = None) -> bool:
    """
    Check if an entry comes from interpreter, library or native code.

    Args:
        entry: Entry to check
        system_patterns: Substrings identifying system code
            (default: default_system_patterns())
    """
    patterns = default_system_patterns() if system_patterns is None else system_patterns
    return any(p in entry.file or p in entry.function for p in patterns)


def is_likely_stdlib(entry) -> bool:
    """
    More aggressive than is_system_code: also matches common standard
    library module paths.
    """
    return is_system_code(entry) or any(p in entry.file for p in _stdlib_patterns())


def is_noise(entry, min_percentage: float = 0.5, system_patterns: Optional[Iterable[str]] = None) -> bool:
    """Check if an entry is below the percentage threshold or system code."""
    return entry.percentage < min_percentage or is_system_code(entry, system_patterns)


def filter_user_code(entries, exclude_stdlib: bool = False) -> List:
    """
    Filter entries to user code only.

    Args:
        entries: Snapshot or sequence of entries
        exclude_stdlib: Also drop standard library code
    """
    if exclude_stdlib:
        return by_predicate(entries, negate(is_likely_stdlib))
    return by_predicate(entries, negate(is_system_code))


def filter_by_threshold(entries, threshold: float) -> List:
    """Entries with percentage at or above threshold."""
    return by_predicate(entries, min_percentage(threshold))

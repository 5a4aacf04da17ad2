# profiling_analysis/analyzer/categorizer.py - Hotspot categorization
"""
Classifies entries into an ordered set of named categories.

Categories are matched first-match-wins in their configured order, so the
configuration is an ordered list of (name, keywords) pairs rather than a
mapping.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple
import logging

from profiling_analysis.exceptions import InvalidArgumentError


OTHER_CATEGORY = "other"


@dataclass(frozen=True)
class Category:
    """A named bucket defined by lowercase keyword patterns."""
    name: str
    keywords: Tuple[str, ...]

    def matches(self, entry) -> bool:
        func_lower = entry.function.lower()
        file_lower = entry.file.lower()
        return any(k in func_lower or k in file_lower for k in self.keywords)


@dataclass(frozen=True)
class CategoryStats:
    """Aggregate numbers for one bucket of a categorization."""
    name: str
    entries: Tuple
    sample_count: int
    percentage: float

    @property
    def display_name(self) -> str:
        return self.name.replace('_', ' ').title()


def default_categories() -> List[Tuple[str, List[str]]]:
    """
    Default ordered categories for common Python workloads.
    """
    return [
        ("serialization", ["json", "pickle", "serialize", "deserialize", "encode", "decode", "marshal"]),
        ("regex", ["regex", "sre_", "/re/", "re.py", "fnmatch"]),
        ("io_operations", ["read", "write", "flush", "socket", "recv", "send", "open"]),
        ("numeric", ["numpy", "linalg", "matrix", "dot", "einsum", "math", "solve"]),
        ("sorting", ["sort", "heap", "bisect", "priority"]),
        ("memory", ["alloc", "copy", "deepcopy", "gc", "append", "extend", "concat"]),
        ("string_operations", ["format", "join", "split", "replace", "strip", "str"]),
    ]


class Categorizer:
    """
    Partitions entries into named buckets, first match wins.

    An entry belongs to a category when any keyword is a case-insensitive
    substring of its function name or file path. Entries matching nothing
    go to the "other" bucket.
    """

    def __init__(self, categories: Sequence[Tuple[str, Sequence[str]]] = None):
        """
        Initialize the categorizer.

        Args:
            categories: Ordered (name, keywords) pairs (default: default_categories())

        Raises:
            InvalidArgumentError: categories is a mapping, a name repeats, or
                a category uses the reserved "other" name
        """
        if categories is None:
            categories = default_categories()

        if isinstance(categories, Mapping):
            raise InvalidArgumentError(
                "Categories must be an ordered sequence of (name, keywords) pairs, not a mapping",
                argument='categories'
            )

        self.categories: List[Category] = []
        seen = set()

        for item in categories:
            try:
                name, keywords = item
            except (TypeError, ValueError) as e:
                raise InvalidArgumentError(
                    f"Category must be a (name, keywords) pair, got {item!r}", argument='categories', value=item
                ) from e

            if isinstance(keywords, str):
                raise InvalidArgumentError(
                    f"Keywords for category {name!r} must be a list, not a string",
                    argument='categories', value=keywords
                )
            if name == OTHER_CATEGORY:
                raise InvalidArgumentError(
                    f"{OTHER_CATEGORY!r} is reserved for unmatched entries", argument='categories', value=name
                )
            if name in seen:
                raise InvalidArgumentError(f"Duplicate category {name!r}", argument='categories', value=name)

            seen.add(name)
            self.categories.append(Category(name, tuple(k.lower() for k in keywords)))

        self.logger = logging.getLogger(__name__)

    @property
    def names(self) -> List[str]:
        """Bucket names in output order, "other" last."""
        return [c.name for c in self.categories] + [OTHER_CATEGORY]

    def classify(self, entry) -> str:
        """Return the name of the first category matching entry."""
        for category in self.categories:
            if category.matches(entry):
                return category.name
        return OTHER_CATEGORY

    def categorize(self, entries) -> Dict[str, List]:
        """
        Partition entries into buckets.

        Args:
            entries: Snapshot or sequence of entries

        Returns:
            Ordered dict mapping every category name (configured order, then
            "other") to its entries, in input order
        """
        entries = getattr(entries, 'entries', entries)
        result: Dict[str, List] = {name: [] for name in self.names}

        for entry in entries:
            result[self.classify(entry)].append(entry)

        counts = ", ".join(f"{k}={len(v)}" for k, v in result.items() if v)
        self.logger.debug(f"Categorized entries: {counts}")
        return result


def summarize(buckets: Mapping[str, Sequence], total_captured: int) -> List[CategoryStats]:
    """
    Compute per-bucket sample totals.

    Args:
        buckets: Result of Categorizer.categorize
        total_captured: Snapshot total_captured

    Returns:
        CategoryStats for each bucket, in bucket order
    """
    stats = []
    for name, entries in buckets.items():
        samples = sum(e.sample_count for e in entries)
        pct = 100.0 * samples / total_captured if total_captured else 0.0
        stats.append(CategoryStats(name, tuple(entries), samples, pct))
    return stats


def categorize_entries(entries, categories: Sequence[Tuple[str, Sequence[str]]] = None) -> Dict[str, List]:
    """Categorize with a one-off Categorizer."""
    return Categorizer(categories).categorize(entries)

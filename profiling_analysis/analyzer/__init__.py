# profiling_analysis/analyzer/__init__.py - Analysis module
"""
Analyzer module for querying, categorizing and comparing snapshots.

This module provides:
- query.py: Filtering and search over snapshot entries
- categorizer.py: Ordered, first-match-wins hotspot categorization
- recommendations.py: Threshold-triggered optimization advice
- diff.py: Signed comparison of two snapshots
- static_analysis.py: Optional static analyzer integration
- report_generator.py: CSV, Markdown and text reports
"""

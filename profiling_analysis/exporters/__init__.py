# profiling_analysis/exporters/__init__.py - Exporters module
"""
Exporters for persisting and outputting snapshots in various formats.

This module provides:
- json_exporter.py: JSON snapshot persistence and named benchmarks
- prometheus.py: Prometheus metrics exporter
- stdout.py: Console output exporter
"""

# profiling_analysis/exporters/prometheus.py - Prometheus metrics exporter
"""
Exposes snapshot hotspots as Prometheus metrics.

Metrics live in a dedicated registry per exporter so several snapshots can
be exported from one process without clashing with the global registry.
"""

from prometheus_client import CollectorRegistry, Gauge, generate_latest, write_to_textfile
from typing import Optional
import logging

from profiling_analysis.collector.snapshot import AllocationSnapshot


class PrometheusExporter:
    """
    Exports snapshot metrics in the Prometheus text format.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, top_n: int = 20):
        """
        Initialize the Prometheus exporter.

        Args:
            registry: Registry to register metrics in (default: a new one)
            top_n: Number of locations exported per snapshot
        """
        self.registry = registry or CollectorRegistry()
        self.top_n = top_n
        self.logger = logging.getLogger(__name__)

        location_labels = ['snapshot', 'function', 'file', 'line']

        # Define metrics
        self.total_samples = Gauge(
            'profiling_analysis_total_samples',
            'Number of captured samples, including discarded frames',
            ['snapshot'],
            registry=self.registry
        )

        self.location_samples = Gauge(
            'profiling_analysis_location_samples',
            'Samples attributed to a location',
            location_labels,
            registry=self.registry
        )

        self.location_percentage = Gauge(
            'profiling_analysis_location_percentage',
            'Share of captured samples attributed to a location',
            location_labels,
            registry=self.registry
        )

        self.total_allocations = Gauge(
            'profiling_analysis_total_allocations',
            'Number of captured allocations',
            ['snapshot'],
            registry=self.registry
        )

        self.allocated_bytes = Gauge(
            'profiling_analysis_allocated_bytes',
            'Bytes allocated by all captured allocations',
            ['snapshot'],
            registry=self.registry
        )

        self.site_bytes = Gauge(
            'profiling_analysis_site_allocated_bytes',
            'Bytes allocated at a location',
            location_labels,
            registry=self.registry
        )

        self.site_count = Gauge(
            'profiling_analysis_site_allocations',
            'Allocations made at a location',
            location_labels,
            registry=self.registry
        )

    def record_snapshot(self, snapshot, name: str = 'default'):
        """
        Record a snapshot's totals and top locations.

        Args:
            snapshot: ProfileSnapshot or AllocationSnapshot
            name: Value of the snapshot label
        """
        if isinstance(snapshot, AllocationSnapshot):
            self._record_allocations(snapshot, name)
            return

        self.total_samples.labels(snapshot=name).set(snapshot.total_captured)

        for entry in snapshot.entries[:self.top_n]:
            labels = dict(snapshot=name, function=entry.function, file=entry.file, line=str(entry.line))
            self.location_samples.labels(**labels).set(entry.sample_count)
            self.location_percentage.labels(**labels).set(entry.percentage)

        self.logger.debug(f"Recorded snapshot {name!r} in Prometheus registry")

    def _record_allocations(self, snapshot: AllocationSnapshot, name: str):
        self.total_allocations.labels(snapshot=name).set(snapshot.total_allocations)
        self.allocated_bytes.labels(snapshot=name).set(snapshot.total_bytes)

        for site in snapshot.sites[:self.top_n]:
            labels = dict(snapshot=name, function=site.function, file=site.file, line=str(site.line))
            self.site_bytes.labels(**labels).set(site.total_bytes)
            self.site_count.labels(**labels).set(site.count)

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.

        Returns:
            Metrics as text
        """
        return generate_latest(self.registry).decode('utf-8')

    def write_textfile(self, path: str):
        """
        Write metrics to a file for the node exporter textfile collector.

        Args:
            path: Output file path
        """
        write_to_textfile(path, self.registry)
        self.logger.info(f"Wrote Prometheus metrics to {path}")

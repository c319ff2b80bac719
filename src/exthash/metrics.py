"""metrics.py - Prometheus metrics for index activity."""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from .constants import InsertStatus


class IndexMetrics:
    """
    Collects insert outcomes, split activity and structure size for one index.

    Each instance registers its metrics in its own CollectorRegistry unless a
    registry is passed in, so several indexes can live in one process.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.inserts = Counter(
            "exthash_inserts_total",
            "Insert calls by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.splits = Counter(
            "exthash_splits_total",
            "Bucket splits performed",
            registry=self.registry,
        )
        self.doublings = Counter(
            "exthash_directory_doublings_total",
            "Directory doublings performed",
            registry=self.registry,
        )
        self.global_depth = Gauge(
            "exthash_global_depth",
            "Current global depth of the directory",
            registry=self.registry,
        )
        self.buckets = Gauge(
            "exthash_buckets",
            "Number of buckets in the bucket table",
            registry=self.registry,
        )
        self.entries = Gauge(
            "exthash_entries",
            "Number of keys stored",
            registry=self.registry,
        )
        # Pre-create label children so every outcome is exported from the start
        for status in InsertStatus:
            self.inserts.labels(outcome=status.value)

    def record_insert(self, status: InsertStatus) -> None:
        self.inserts.labels(outcome=status.value).inc()

    def record_split(self, doubled: bool) -> None:
        self.splits.inc()
        if doubled:
            self.doublings.inc()

    def update_structure(self, global_depth: int, buckets: int, entries: int) -> None:
        self.global_depth.set(global_depth)
        self.buckets.set(buckets)
        self.entries.set(entries)

    def as_dict(self) -> Dict[str, Any]:
        """Current values as plain numbers."""

        def value(name: str, labels: dict[str, str] | None = None) -> float:
            result = self.registry.get_sample_value(name, labels)
            return 0.0 if result is None else result

        return {
            "inserts": {
                status.value: value("exthash_inserts_total", {"outcome": status.value})
                for status in InsertStatus
            },
            "splits": value("exthash_splits_total"),
            "directory_doublings": value("exthash_directory_doublings_total"),
            "global_depth": value("exthash_global_depth"),
            "buckets": value("exthash_buckets"),
            "entries": value("exthash_entries"),
        }

    def expose(self) -> bytes:
        """Text exposition format for scraping."""
        return generate_latest(self.registry)

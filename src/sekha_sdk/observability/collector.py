# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector mirroring SDK metrics into a dict snapshot and Prometheus.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Prometheus metric registration on first use
    3. Dict snapshot for JSON export and tests
    4. Label cardinality protection (max 1000 unique combinations per metric)

Usage:
    >>> from sekha_sdk.observability.collector import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('sekha_sdk_retries_total',
    ...                       labels={'kind': 'server_fault'})
    >>> metrics = collector.get_metrics()

Thread Safety:
    All operations are thread-safe. Uses RLock for reentrant locking.

Prometheus Integration:
    Metrics are registered with the default Prometheus registry unless a
    CollectorRegistry is passed in. Exposing them (an HTTP endpoint, a push
    gateway) is left to the host application.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from .constants import (
    ACTIVE_REQUESTS,
    ATTEMPTS_TOTAL,
    LATENCY_BUCKETS,
    RATE_LIMIT_ADMISSIONS_TOTAL,
    RATE_LIMIT_WAIT_SECONDS,
    REQUEST_DURATION_SECONDS,
    REQUEST_FAILURES_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
    STREAM_FRAMES_TOTAL,
    STREAM_MALFORMED_TOTAL,
    WAIT_BUCKETS,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.

    This dataclass defines the schema for metrics, including their type,
    description, labels, and histogram buckets.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


# Pre-defined metrics for the SDK
METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Request Counters ===
    REQUESTS_TOTAL: MetricDefinition(
        REQUESTS_TOTAL,
        "counter",
        "Total calls to execute()",
        ("verb",),
    ),
    ATTEMPTS_TOTAL: MetricDefinition(
        ATTEMPTS_TOTAL,
        "counter",
        "Total transport attempts",
        ("verb",),
    ),
    RETRIES_TOTAL: MetricDefinition(
        RETRIES_TOTAL,
        "counter",
        "Total retries scheduled",
        ("kind",),
    ),
    REQUEST_FAILURES_TOTAL: MetricDefinition(
        REQUEST_FAILURES_TOTAL,
        "counter",
        "Total calls that failed",
        ("kind",),
    ),
    # === Gauges ===
    ACTIVE_REQUESTS: MetricDefinition(
        ACTIVE_REQUESTS,
        "gauge",
        "Calls currently in flight",
        (),
    ),
    # === Histograms ===
    REQUEST_DURATION_SECONDS: MetricDefinition(
        REQUEST_DURATION_SECONDS,
        "histogram",
        "Duration of execute() calls",
        ("verb",),
        buckets=LATENCY_BUCKETS,
    ),
    RATE_LIMIT_WAIT_SECONDS: MetricDefinition(
        RATE_LIMIT_WAIT_SECONDS,
        "histogram",
        "Time spent waiting for rate limit admission",
        (),
        buckets=WAIT_BUCKETS,
    ),
    # === Rate Limiting ===
    RATE_LIMIT_ADMISSIONS_TOTAL: MetricDefinition(
        RATE_LIMIT_ADMISSIONS_TOTAL,
        "counter",
        "Total rate limit admissions",
        (),
    ),
    # === Streaming ===
    STREAM_FRAMES_TOTAL: MetricDefinition(
        STREAM_FRAMES_TOTAL,
        "counter",
        "Total stream frames yielded",
        (),
    ),
    STREAM_MALFORMED_TOTAL: MetricDefinition(
        STREAM_MALFORMED_TOTAL,
        "counter",
        "Total malformed stream records dropped",
        (),
    ),
}


class UnifiedMetricsCollector:
    """
    Metrics collector backed by a dict snapshot and prometheus_client.

    Thread Safety:
        All operations use RLock for thread-safe access. The lock is reentrant
        to allow nested calls from callbacks.

    Cardinality Protection:
        To prevent unbounded memory growth, a maximum of MAX_LABEL_COMBINATIONS
        unique label combinations are tracked per metric.

    Example:
        >>> collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('sekha_sdk_requests_total',
        ...                       labels={'verb': 'GET'})
        >>> collector.get_metrics()['counters']
        {'sekha_sdk_requests_total': {'verb=GET': 1}}
    """

    # Maximum unique label combinations per metric to prevent cardinality explosion
    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to mirror metrics into Prometheus
            registry: Optional Prometheus CollectorRegistry for testing
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY

        # Dict-based metrics (always available)
        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        # Thread safety
        self._lock = threading.RLock()

        # Prometheus metric instances (lazy initialized)
        self._prom_metrics: dict[str, Any] = {}

        # Label cardinality tracking
        self._label_combinations: dict[str, set[str]] = defaultdict(set)

        logger.debug(
            f"UnifiedMetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """
        Check if adding this label combination would exceed cardinality limit.

        Returns:
            True if the label combination is allowed, False otherwise
        """
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom_metric(
        self, name: str, metric_type: str, labels: dict[str, str] | None
    ) -> Any | None:
        """
        Get or create the Prometheus metric backing ``name``.

        Metrics without a definition are created on the fly with the label
        names of their first use.
        """
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name not in self._prom_metrics:
                defn = METRIC_DEFINITIONS.get(name)
                if defn is None or defn.metric_type != metric_type:
                    defn = MetricDefinition(
                        name,
                        metric_type,
                        f"Dynamic {metric_type}: {name}",
                        tuple(sorted(labels)) if labels else (),
                    )
                try:
                    if metric_type == "counter":
                        metric: Any = Counter(
                            name,
                            defn.description,
                            list(defn.label_names),
                            registry=self._registry,
                        )
                    elif metric_type == "gauge":
                        metric = Gauge(
                            name,
                            defn.description,
                            list(defn.label_names),
                            registry=self._registry,
                        )
                    else:
                        metric = Histogram(
                            name,
                            defn.description,
                            list(defn.label_names),
                            buckets=defn.buckets or LATENCY_BUCKETS,
                            registry=self._registry,
                        )
                except ValueError as e:
                    # Duplicate registration in a shared registry
                    logger.warning(
                        f"Failed to create Prometheus {metric_type} {name}: {e}"
                    )
                    return None
                self._prom_metrics[name] = metric

            return self._prom_metrics[name]

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name (should follow Prometheus naming convention)
            value: Value to increment by (must be positive)
            labels: Optional labels dict

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        prom_counter = self._get_or_create_prom_metric(name, "counter", labels)
        if prom_counter is not None:
            try:
                if labels:
                    prom_counter.labels(**labels).inc(value)
                else:
                    prom_counter.inc(value)
            except ValueError as e:
                logger.debug(f"Prometheus counter update failed for {name}: {e}")

    # === Gauge Operations ===

    def inc_gauge(
        self,
        name: str,
        value: float = 1.0,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Increment a gauge metric."""
        self._update_gauge(name, labels, value, "inc")

    def dec_gauge(
        self,
        name: str,
        value: float = 1.0,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Decrement a gauge metric."""
        self._update_gauge(name, labels, value, "dec")

    def _update_gauge(
        self, name: str, labels: dict[str, str] | None, value: float, op: str
    ) -> None:
        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            if op == "inc":
                self._gauges[name][label_key] += value
            else:
                self._gauges[name][label_key] -= value

        prom_gauge = self._get_or_create_prom_metric(name, "gauge", labels)
        if prom_gauge is not None:
            try:
                target = prom_gauge.labels(**labels) if labels else prom_gauge
                getattr(target, op)(value)
            except ValueError as e:
                logger.debug(f"Prometheus gauge {op} failed for {name}: {e}")

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            # Store observations for dict-based export
            self._histograms[name][label_key].append(value)
            # Keep only recent observations to prevent memory growth
            if len(self._histograms[name][label_key]) > 10000:
                self._histograms[name][label_key] = self._histograms[name][label_key][
                    -5000:
                ]

        prom_histogram = self._get_or_create_prom_metric(name, "histogram", labels)
        if prom_histogram is not None:
            try:
                if labels:
                    prom_histogram.labels(**labels).observe(value)
                else:
                    prom_histogram.observe(value)
            except ValueError as e:
                logger.debug(f"Prometheus histogram observe failed for {name}: {e}")

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            gauges = {
                name: dict(label_values) for name, label_values in self._gauges.items()
            }

            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of one counter series (0 if never incremented)."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            return self._counters.get(name, {}).get(label_key, 0)

    # === Lifecycle ===

    def reset(self) -> None:
        """Reset the dict snapshot to zero. Prometheus series are left as-is."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    @property
    def prometheus_enabled(self) -> bool:
        """Check if Prometheus metrics are enabled."""
        return self._enable_prometheus


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: UnifiedMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(
    enable_prometheus: bool = True,
) -> UnifiedMetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Thread-safe singleton initialization. Every executor built with metrics
    enabled and no explicit collector shares this instance, so Prometheus
    series are registered once per process.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)

    Returns:
        The UnifiedMetricsCollector singleton
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = UnifiedMetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    Warning:
        Prometheus series registered by the old instance stay in the default
        registry; a new singleton with Prometheus enabled will log duplicate
        registration warnings and fall back to the dict snapshot.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]

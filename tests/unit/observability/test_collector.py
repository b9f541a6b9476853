# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the observability collector module.

Tests cover:
- MetricDefinition and the predefined SDK metrics
- Counter, Gauge, and Histogram operations (dict snapshot)
- Prometheus mirroring into a private CollectorRegistry
- Label cardinality protection
- Singleton pattern: get_metrics_collector, reset_metrics_collector
"""

from __future__ import annotations

import threading

import pytest
from prometheus_client import CollectorRegistry

from sekha_sdk.observability.collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from sekha_sdk.observability.constants import (
    ACTIVE_REQUESTS,
    ATTEMPTS_TOTAL,
    RATE_LIMIT_WAIT_SECONDS,
    REQUEST_DURATION_SECONDS,
    REQUEST_FAILURES_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
    STREAM_FRAMES_TOTAL,
    STREAM_MALFORMED_TOTAL,
    WAIT_BUCKETS,
)

# =============================================================================
# MetricDefinition Tests
# =============================================================================


class TestMetricDefinition:
    """Test MetricDefinition and the predefined metrics."""

    def test_definition_defaults(self) -> None:
        defn = MetricDefinition(
            name="test_gauge",
            metric_type="gauge",
            description="A test gauge",
        )
        assert defn.label_names == ()
        assert defn.buckets is None

    def test_predefined_metrics_exist(self) -> None:
        for name in (
            REQUESTS_TOTAL,
            ATTEMPTS_TOTAL,
            RETRIES_TOTAL,
            REQUEST_FAILURES_TOTAL,
            ACTIVE_REQUESTS,
            REQUEST_DURATION_SECONDS,
            RATE_LIMIT_WAIT_SECONDS,
            STREAM_FRAMES_TOTAL,
            STREAM_MALFORMED_TOTAL,
        ):
            assert name in METRIC_DEFINITIONS
            assert name.startswith("sekha_sdk_")

    def test_predefined_labels(self) -> None:
        assert METRIC_DEFINITIONS[REQUESTS_TOTAL].label_names == ("verb",)
        assert METRIC_DEFINITIONS[RETRIES_TOTAL].label_names == ("kind",)
        assert METRIC_DEFINITIONS[ACTIVE_REQUESTS].label_names == ()

    def test_wait_histogram_buckets(self) -> None:
        assert METRIC_DEFINITIONS[RATE_LIMIT_WAIT_SECONDS].buckets == WAIT_BUCKETS


# =============================================================================
# Dict Snapshot Tests
# =============================================================================


class TestSnapshotOperations:
    """Test counter, gauge and histogram operations without Prometheus."""

    @pytest.fixture
    def collector(self) -> UnifiedMetricsCollector:
        return UnifiedMetricsCollector(enable_prometheus=False)

    def test_inc_counter(self, collector: UnifiedMetricsCollector) -> None:
        collector.inc_counter(REQUESTS_TOTAL, labels={"verb": "GET"})
        collector.inc_counter(REQUESTS_TOTAL, 2, labels={"verb": "GET"})
        collector.inc_counter(REQUESTS_TOTAL, labels={"verb": "POST"})

        assert collector.get_counter(REQUESTS_TOTAL, {"verb": "GET"}) == 3
        assert collector.get_counter(REQUESTS_TOTAL, {"verb": "POST"}) == 1
        assert collector.get_metrics()["counters"][REQUESTS_TOTAL] == {
            "verb=GET": 3,
            "verb=POST": 1,
        }

    def test_negative_counter_increment_rejected(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            collector.inc_counter(REQUESTS_TOTAL, -1)

    def test_unknown_counter_is_zero(self, collector: UnifiedMetricsCollector) -> None:
        assert collector.get_counter("never_touched_total") == 0

    def test_label_key_is_order_independent(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        collector.inc_counter("custom_total", labels={"b": "2", "a": "1"})
        collector.inc_counter("custom_total", labels={"a": "1", "b": "2"})

        assert collector.get_metrics()["counters"]["custom_total"] == {"a=1,b=2": 2}

    def test_gauge_operations(self, collector: UnifiedMetricsCollector) -> None:
        collector.inc_gauge(ACTIVE_REQUESTS, 5)
        collector.inc_gauge(ACTIVE_REQUESTS)
        collector.dec_gauge(ACTIVE_REQUESTS, 2)

        assert collector.get_metrics()["gauges"][ACTIVE_REQUESTS] == {"": 4.0}

    def test_histogram_summary(self, collector: UnifiedMetricsCollector) -> None:
        for value in (0.1, 0.3, 0.2):
            collector.observe_histogram(
                REQUEST_DURATION_SECONDS, value, labels={"verb": "GET"}
            )

        summary = collector.get_metrics()["histograms"][REQUEST_DURATION_SECONDS][
            "verb=GET"
        ]
        assert summary["count"] == 3
        assert summary["sum"] == pytest.approx(0.6)
        assert summary["avg"] == pytest.approx(0.2)
        assert summary["min"] == 0.1
        assert summary["max"] == 0.3

    def test_histogram_observations_bounded(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        for _ in range(10001):
            collector.observe_histogram(RATE_LIMIT_WAIT_SECONDS, 0.0)

        assert len(collector._histograms[RATE_LIMIT_WAIT_SECONDS][""]) == 5000

    def test_reset(self, collector: UnifiedMetricsCollector) -> None:
        collector.inc_counter(RETRIES_TOTAL, labels={"kind": "timeout"})
        collector.inc_gauge(ACTIVE_REQUESTS)

        collector.reset()

        assert collector.get_metrics() == {
            "counters": {},
            "gauges": {},
            "histograms": {},
        }

    def test_concurrent_increments(self, collector: UnifiedMetricsCollector) -> None:
        def work() -> None:
            for _ in range(1000):
                collector.inc_counter(ATTEMPTS_TOTAL, labels={"verb": "GET"})

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert collector.get_counter(ATTEMPTS_TOTAL, {"verb": "GET"}) == 8000


# =============================================================================
# Cardinality Tests
# =============================================================================


class TestCardinalityProtection:
    """Test label cardinality limits."""

    def test_new_combinations_dropped_past_limit(self) -> None:
        collector = UnifiedMetricsCollector(enable_prometheus=False)
        collector.MAX_LABEL_COMBINATIONS = 2

        for kind in ("timeout", "connection", "server_fault"):
            collector.inc_counter(RETRIES_TOTAL, labels={"kind": kind})
        collector.inc_counter(RETRIES_TOTAL, labels={"kind": "timeout"})

        assert collector.get_metrics()["counters"][RETRIES_TOTAL] == {
            "kind=timeout": 2,
            "kind=connection": 1,
        }


# =============================================================================
# Prometheus Tests
# =============================================================================


class TestPrometheusMirroring:
    """Test that metrics land in the Prometheus registry."""

    @pytest.fixture
    def registry(self) -> CollectorRegistry:
        return CollectorRegistry()

    @pytest.fixture
    def collector(self, registry: CollectorRegistry) -> UnifiedMetricsCollector:
        return UnifiedMetricsCollector(registry=registry)

    def test_enabled_by_default(self, collector: UnifiedMetricsCollector) -> None:
        assert collector.prometheus_enabled is True

    def test_counter_mirrored(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.inc_counter(REQUEST_FAILURES_TOTAL, labels={"kind": "not_found"})
        collector.inc_counter(REQUEST_FAILURES_TOTAL, labels={"kind": "not_found"})

        assert (
            registry.get_sample_value(REQUEST_FAILURES_TOTAL, {"kind": "not_found"})
            == 2.0
        )

    def test_gauge_mirrored(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.inc_gauge(ACTIVE_REQUESTS)
        collector.inc_gauge(ACTIVE_REQUESTS)
        collector.dec_gauge(ACTIVE_REQUESTS)

        assert registry.get_sample_value(ACTIVE_REQUESTS) == 1.0

    def test_histogram_mirrored(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.observe_histogram(RATE_LIMIT_WAIT_SECONDS, 0.25)

        assert registry.get_sample_value(f"{RATE_LIMIT_WAIT_SECONDS}_count") == 1.0
        assert registry.get_sample_value(f"{RATE_LIMIT_WAIT_SECONDS}_sum") == 0.25

    def test_undefined_metric_created_on_first_use(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.inc_counter("app_custom_events_total", labels={"source": "cli"})

        assert (
            registry.get_sample_value("app_custom_events_total", {"source": "cli"})
            == 1.0
        )

    def test_duplicate_registration_falls_back_to_snapshot(
        self, registry: CollectorRegistry
    ) -> None:
        first = UnifiedMetricsCollector(registry=registry)
        second = UnifiedMetricsCollector(registry=registry)

        first.inc_counter(STREAM_FRAMES_TOTAL)
        second.inc_counter(STREAM_FRAMES_TOTAL)

        assert second.get_counter(STREAM_FRAMES_TOTAL) == 1
        assert registry.get_sample_value(STREAM_FRAMES_TOTAL) == 1.0

    def test_disabled_collector_registers_nothing(
        self, registry: CollectorRegistry
    ) -> None:
        collector = UnifiedMetricsCollector(enable_prometheus=False, registry=registry)

        collector.inc_counter(STREAM_MALFORMED_TOTAL)

        assert collector.prometheus_enabled is False
        assert registry.get_sample_value(STREAM_MALFORMED_TOTAL) is None


# =============================================================================
# Singleton Tests
# =============================================================================


class TestSingleton:
    """Test the process-wide collector."""

    @pytest.fixture(autouse=True)
    def fresh_singleton(self):
        reset_metrics_collector()
        yield
        reset_metrics_collector()

    def test_same_instance_returned(self) -> None:
        first = get_metrics_collector(enable_prometheus=False)
        second = get_metrics_collector()

        assert first is second
        assert first.prometheus_enabled is False

    def test_reset_creates_new_instance(self) -> None:
        first = get_metrics_collector(enable_prometheus=False)
        first.inc_counter(REQUESTS_TOTAL, labels={"verb": "GET"})

        reset_metrics_collector()
        second = get_metrics_collector(enable_prometheus=False)

        assert second is not first
        assert first.get_counter(REQUESTS_TOTAL, {"verb": "GET"}) == 0

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability for the Sekha SDK.

Metric names live in ``constants``; ``UnifiedMetricsCollector`` records them
into a dict snapshot and mirrors them into prometheus_client.

Example:
    >>> from sekha_sdk.observability import get_metrics_collector, RETRIES_TOTAL
    >>> get_metrics_collector().get_counter(RETRIES_TOTAL, {"kind": "timeout"})
    0
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    ACTIVE_REQUESTS,
    ATTEMPTS_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
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

__all__ = [
    "ACTIVE_REQUESTS",
    "ATTEMPTS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "RATE_LIMIT_ADMISSIONS_TOTAL",
    "RATE_LIMIT_WAIT_SECONDS",
    "REQUESTS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "REQUEST_FAILURES_TOTAL",
    "RETRIES_TOTAL",
    "STREAM_FRAMES_TOTAL",
    "STREAM_MALFORMED_TOTAL",
    "WAIT_BUCKETS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]

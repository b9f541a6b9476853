# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `sekha_sdk_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Only categorical labels are used:
    - `kind` - ErrorKind value (validation, timeout, server_fault, ...)
    - `verb` - HTTP method

    NEVER label by path, conversation id or request id (unbounded!)

Usage:
    >>> from sekha_sdk.observability.constants import REQUESTS_TOTAL
    >>> print(REQUESTS_TOTAL)
    'sekha_sdk_requests_total'
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "sekha_sdk"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Request Metrics (executor/executor.py)
# =============================================================================

REQUESTS_TOTAL = f"{METRIC_PREFIX}_requests_total"
"""Total calls to RequestExecutor.execute()."""

ATTEMPTS_TOTAL = f"{METRIC_PREFIX}_attempts_total"
"""Total transport attempts, first tries and retries alike."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retries scheduled, by the kind of failure that caused them."""

REQUEST_FAILURES_TOTAL = f"{METRIC_PREFIX}_request_failures_total"
"""Total calls that ended in a RequestError, by kind."""

ACTIVE_REQUESTS = f"{METRIC_PREFIX}_active_requests"
"""Number of calls currently inside execute()."""

REQUEST_DURATION_SECONDS = f"{METRIC_PREFIX}_request_duration_seconds"
"""Wall time of execute(), admission and backoff included (histogram)."""


# =============================================================================
# Rate Limiting Metrics (ratelimit/sliding_window.py via the executor)
# =============================================================================

RATE_LIMIT_ADMISSIONS_TOTAL = f"{METRIC_PREFIX}_rate_limit_admissions_total"
"""Total admissions granted by the rate limiter."""

RATE_LIMIT_WAIT_SECONDS = f"{METRIC_PREFIX}_rate_limit_wait_seconds"
"""Time spent suspended waiting for admission (histogram)."""


# =============================================================================
# Streaming Metrics (streaming/source.py)
# =============================================================================

STREAM_FRAMES_TOTAL = f"{METRIC_PREFIX}_stream_frames_total"
"""Total data frames yielded to stream consumers."""

STREAM_MALFORMED_TOTAL = f"{METRIC_PREFIX}_stream_malformed_records_total"
"""Total stream records dropped because they did not parse."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS: list[float] = [
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
]
"""Default latency buckets for request duration histograms (in seconds)."""

WAIT_BUCKETS: list[float] = [
    0.0,
    0.1,
    0.5,
    1.0,
    5.0,
    15.0,
    30.0,
    60.0,
]
"""Rate limit wait buckets (in seconds, up to one default window)."""


__all__ = [
    "ACTIVE_REQUESTS",
    "ATTEMPTS_TOTAL",
    "LATENCY_BUCKETS",
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
]

"""Shared fixtures for sekha_sdk unit tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from prometheus_client import CollectorRegistry

from sekha_sdk.executor.config import ClientConfig
from sekha_sdk.executor.executor import RequestExecutor
from sekha_sdk.observability.collector import (
    UnifiedMetricsCollector,
    reset_metrics_collector,
)
from sekha_sdk.retry.backoff import BackoffPolicy

BASE_URL = "http://sekha.test"
CREDENTIAL = "sk-test-" + "x" * 32

Handler = Callable[[httpx.Request], Any]


@pytest.fixture
def metrics() -> UnifiedMetricsCollector:
    """Collector bound to a private registry."""
    return UnifiedMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def make_executor(
    metrics: UnifiedMetricsCollector,
) -> Callable[..., RequestExecutor]:
    """
    Build an executor whose transport is an httpx.MockTransport.

    Backoff delays are zero so retry tests run instantly.
    """

    def _make(handler: Handler, **config_options: Any) -> RequestExecutor:
        options: dict[str, Any] = {"base_url": BASE_URL, "credential": CREDENTIAL}
        options.update(config_options)
        return RequestExecutor(
            ClientConfig(**options),
            transport=httpx.MockTransport(handler),
            backoff=BackoffPolicy(base_delay=0.0, factor=1.0, max_delay=0.0),
            metrics=metrics,
        )

    return _make


@pytest.fixture(autouse=True)
def fresh_global_collector():
    """Give every test a fresh process-wide collector."""
    reset_metrics_collector()
    yield
    reset_metrics_collector()

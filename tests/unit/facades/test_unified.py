"""Unit tests for UnifiedClient."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from sekha_sdk.exceptions import ConfigurationError
from sekha_sdk.executor import RequestExecutor
from sekha_sdk.facades import BridgeClient, MCPClient, MemoryController, UnifiedClient
from sekha_sdk.observability.collector import UnifiedMetricsCollector

CONTROLLER_URL = "http://controller.test"
BRIDGE_URL = "http://bridge.test"
CREDENTIAL = "k" * 32


def by_host(
    seen: list[httpx.Request], responses: dict[str, httpx.Response]
) -> Callable[[httpx.Request], httpx.Response]:
    """Handler answering each host with its own response."""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses[request.url.host]

    return handler


def healthy() -> dict[str, httpx.Response]:
    return {
        "controller.test": httpx.Response(200, json={"status": "ok"}),
        "bridge.test": httpx.Response(200, json={"status": "healthy"}),
    }


class TestConnect:
    """Tests for UnifiedClient.connect()."""

    @pytest.mark.asyncio
    async def test_credentials_routed_per_service(
        self, metrics: UnifiedMetricsCollector
    ):
        seen: list[httpx.Request] = []
        sekha = UnifiedClient.connect(
            CONTROLLER_URL,
            BRIDGE_URL,
            CREDENTIAL,
            mcp_credential="m" * 16,
            transport=httpx.MockTransport(by_host(seen, healthy())),
            metrics=metrics,
        )

        async with sekha:
            assert isinstance(sekha.controller, MemoryController)
            assert isinstance(sekha.mcp, MCPClient)
            assert isinstance(sekha.bridge, BridgeClient)
            assert sekha.controller.executor.config.credential == CREDENTIAL
            assert sekha.mcp.executor.config.credential == "m" * 16
            assert sekha.mcp.executor.config.base_url == CONTROLLER_URL
            assert sekha.bridge.executor.config.credential is None
            assert sekha.bridge.executor.config.base_url == BRIDGE_URL

        assert sekha.controller.executor.closed is True
        assert sekha.mcp.executor.closed is True
        assert sekha.bridge.executor.closed is True

    def test_mcp_falls_back_to_controller_credential(
        self, metrics: UnifiedMetricsCollector
    ):
        sekha = UnifiedClient.connect(
            CONTROLLER_URL,
            BRIDGE_URL,
            CREDENTIAL,
            transport=httpx.MockTransport(by_host([], healthy())),
            metrics=metrics,
        )

        assert sekha.mcp.executor.config.credential == CREDENTIAL

    def test_invalid_controller_credential(self, metrics: UnifiedMetricsCollector):
        with pytest.raises(ConfigurationError, match="32"):
            UnifiedClient.connect(
                CONTROLLER_URL, BRIDGE_URL, "short", metrics=metrics
            )


class TestHealthCheck:
    """Tests for UnifiedClient.health_check()."""

    def build(
        self,
        make_executor: Callable[..., RequestExecutor],
        responses: dict[str, httpx.Response],
        seen: list[httpx.Request],
    ) -> UnifiedClient:
        handler = by_host(seen, responses)
        return UnifiedClient(
            MemoryController(make_executor(handler, base_url=CONTROLLER_URL)),
            MCPClient(make_executor(handler, base_url=CONTROLLER_URL)),
            BridgeClient(
                make_executor(
                    handler,
                    base_url=BRIDGE_URL,
                    credential=None,
                    require_credential=False,
                )
            ),
        )

    @pytest.mark.asyncio
    async def test_both_healthy(self, make_executor: Callable[..., RequestExecutor]):
        seen: list[httpx.Request] = []
        sekha = self.build(make_executor, healthy(), seen)

        report = await sekha.health_check()

        assert report == {
            "controller": {"status": "ok"},
            "bridge": {"status": "healthy"},
        }
        assert sorted(request.url.host for request in seen) == [
            "bridge.test",
            "controller.test",
        ]
        assert all(request.url.path == "/health" for request in seen)

    @pytest.mark.asyncio
    async def test_failing_service_reported_unhealthy(
        self, make_executor: Callable[..., RequestExecutor]
    ):
        responses = healthy()
        responses["bridge.test"] = httpx.Response(401, json={"error": "denied"})
        sekha = self.build(make_executor, responses, [])

        report = await sekha.health_check()

        assert report["controller"] == {"status": "ok"}
        assert report["bridge"]["status"] == "unhealthy"
        assert report["bridge"]["error"]

    @pytest.mark.asyncio
    async def test_both_unhealthy(self, make_executor: Callable[..., RequestExecutor]):
        responses = {
            "controller.test": httpx.Response(401),
            "bridge.test": httpx.Response(404),
        }
        sekha = self.build(make_executor, responses, [])

        report = await sekha.health_check()

        assert report["controller"]["status"] == "unhealthy"
        assert report["bridge"]["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(
        self, make_executor: Callable[..., RequestExecutor]
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("handler bug")

        sekha = UnifiedClient(
            MemoryController(make_executor(handler)),
            MCPClient(make_executor(handler)),
            BridgeClient(make_executor(handler)),
        )

        with pytest.raises(RuntimeError, match="handler bug"):
            await sekha.health_check()

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
One handle over the controller, MCP and bridge facades.

Example:
    >>> async with UnifiedClient.connect(
    ...     "http://localhost:8080", "http://localhost:5001", credential=api_key
    ... ) as sekha:
    ...     health = await sekha.health_check()
    ...     print(health["controller"], health["bridge"])
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from typing_extensions import Self

from ..cancellation import CancellationToken
from ..exceptions import SekhaError
from .bridge import BridgeClient
from .controller import MemoryController
from .mcp import MCPClient

logger = logging.getLogger(__name__)


class UnifiedClient:
    """
    Holds one facade per service.

    The controller and MCP facades talk to the controller URL; the bridge
    facade to the bridge URL. Each facade keeps its own executor, so each
    service has its own rate window.

    Attributes:
        controller: REST controller facade
        mcp: MCP tool facade
        bridge: LLM bridge facade
    """

    def __init__(
        self,
        controller: MemoryController,
        mcp: MCPClient,
        bridge: BridgeClient,
    ):
        self.controller = controller
        self.mcp = mcp
        self.bridge = bridge

    @classmethod
    def connect(
        cls,
        controller_url: str,
        bridge_url: str,
        credential: str | None = None,
        *,
        mcp_credential: str | None = None,
        bridge_credential: str | None = None,
        **options: Any,
    ) -> Self:
        """
        Build all three facades.

        Args:
            controller_url: Base URL of the memory controller
            bridge_url: Base URL of the LLM bridge
            credential: Controller credential
            mcp_credential: MCP credential (defaults to ``credential``)
            bridge_credential: Bridge credential (optional)
            **options: Passed to every facade's ``connect()``

        Raises:
            ConfigurationError: If any facade's configuration is invalid
        """
        return cls(
            MemoryController.connect(controller_url, credential, **options),
            MCPClient.connect(controller_url, mcp_credential or credential, **options),
            BridgeClient.connect(bridge_url, bridge_credential, **options),
        )

    async def aclose(self) -> None:
        for facade in (self.controller, self.mcp, self.bridge):
            await facade.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def health_check(
        self, *, cancel_token: CancellationToken | None = None
    ) -> dict[str, Any]:
        """
        Check controller and bridge health concurrently.

        A service whose check fails is reported as
        ``{"status": "unhealthy", "error": "<message>"}`` instead of raising.

        Returns:
            ``{"controller": ..., "bridge": ...}``
        """
        results = await asyncio.gather(
            self.controller.health(cancel_token=cancel_token),
            self.bridge.health(cancel_token=cancel_token),
            return_exceptions=True,
        )

        report: dict[str, Any] = {}
        for service, result in zip(("controller", "bridge"), results):
            if isinstance(result, SekhaError):
                logger.warning(f"Health check failed for {service}: {result}")
                report[service] = {"status": "unhealthy", "error": str(result)}
            elif isinstance(result, BaseException):
                raise result
            else:
                report[service] = result
        return report


__all__ = ["UnifiedClient"]

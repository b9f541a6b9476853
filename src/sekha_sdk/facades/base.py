# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Shared plumbing for the protocol facades."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from typing_extensions import Self

from ..cancellation import CancellationToken
from ..executor.config import ClientConfig
from ..executor.executor import RequestExecutor
from ..types.request import RequestDescriptor


class Facade:
    """
    Base class for method sets that map calls onto a RequestExecutor.

    A facade never decides retries, pacing or error kinds; it only builds
    descriptors. Facades built with ``connect()`` or ``from_config()`` own
    their executor and close it on ``aclose()``. Facades handed an executor
    leave its lifecycle to the caller.
    """

    # Per-facade ClientConfig defaults, applied by connect()
    CONFIG_DEFAULTS: ClassVar[dict[str, Any]] = {}

    def __init__(self, executor: RequestExecutor, *, owns_executor: bool = False):
        self.executor = executor
        self._owns_executor = owns_executor

    @classmethod
    def from_config(cls, config: ClientConfig, **executor_options: Any) -> Self:
        """
        Build a facade with its own executor.

        Args:
            config: Client configuration
            **executor_options: Passed through to RequestExecutor
                (rate_limiter, transport, metrics, ...)
        """
        return cls(RequestExecutor(config, **executor_options), owns_executor=True)

    @classmethod
    def connect(
        cls,
        base_url: str,
        credential: str | None = None,
        **options: Any,
    ) -> Self:
        """
        Build a facade from a base URL and credential.

        ClientConfig fields may be passed as keyword options; anything else
        goes to the RequestExecutor.

        Raises:
            ConfigurationError: If the resulting configuration is invalid
        """
        config_fields = set(ClientConfig.__dataclass_fields__)
        config_options = dict(cls.CONFIG_DEFAULTS)
        executor_options: dict[str, Any] = {}
        for name, value in options.items():
            if name in config_fields:
                config_options[name] = value
            else:
                executor_options[name] = value
        config = ClientConfig(base_url=base_url, credential=credential, **config_options)
        return cls.from_config(config, **executor_options)

    async def aclose(self) -> None:
        if self._owns_executor:
            await self.executor.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _call(
        self,
        verb: str,
        path: str,
        *,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
        stream: bool = False,
    ) -> Any:
        return await self.executor.execute(
            RequestDescriptor(
                verb,
                path,
                body=body,
                params=params,
                cancel_token=cancel_token,
                stream=stream,
            )
        )


def compact(**fields: Any) -> dict[str, Any]:
    """Build a JSON body, leaving out fields that are None."""
    return {name: value for name, value in fields.items() if value is not None}


def check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")


__all__ = ["Facade", "check_choice", "compact"]

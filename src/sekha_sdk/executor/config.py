# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Client configuration for the Sekha SDK.

One ClientConfig describes one server: where it lives, how to authenticate,
and how the executor paces, retries and times out requests against it.
Invalid values fail at construction with ConfigurationError.
"""

from dataclasses import dataclass

import httpx

from ..exceptions import ConfigurationError
from ..retry.backoff import BackoffPolicy


@dataclass
class ClientConfig:
    """
    Configuration for a RequestExecutor.

    Example:
        >>> config = ClientConfig(
        ...     base_url="http://localhost:8080",
        ...     credential="sk-" + "x" * 40,
        ... )
        >>> config.max_attempts
        4
    """

    # === Server ===

    base_url: str
    """Absolute http(s) URL of the server."""

    credential: str | None = None
    """Bearer token sent as the Authorization header."""

    # === Timeouts and Retries ===

    timeout: float = 30.0
    """Per-attempt timeout in seconds."""

    max_attempts: int = 4
    """Total attempts per call, first try included."""

    backoff_base_delay: float = 0.5
    """Delay before the first retry in seconds."""

    backoff_factor: float = 2.0
    """Multiplier applied to the delay for each further retry."""

    backoff_max_delay: float = 10.0
    """Ceiling on any single retry delay in seconds."""

    # === Rate Limiting ===

    rate_limit: int = 1000
    """Maximum admissions per rate window."""

    rate_window_seconds: float = 60.0
    """Length of the trailing rate window in seconds."""

    # === Credential Policy ===

    require_credential: bool = True
    """Reject configurations without a credential."""

    min_credential_length: int = 32
    """Minimum accepted credential length."""

    # === Misc ===

    user_agent: str = "sekha-python-sdk/1.0.0"
    """User-Agent header sent with every request."""

    metrics_enabled: bool = True
    """Record metrics in the process-wide collector."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        try:
            url = httpx.URL(self.base_url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigurationError(f"Invalid base_url {self.base_url!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(
                f"base_url must be an absolute http(s) URL, got {self.base_url!r}"
            )

        if self.credential is None or self.credential == "":
            if self.require_credential:
                raise ConfigurationError("credential is required")
        elif len(self.credential) < self.min_credential_length:
            raise ConfigurationError(
                f"credential must be at least {self.min_credential_length} characters"
            )

        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.rate_limit < 1:
            raise ConfigurationError("rate_limit must be at least 1")
        if self.rate_window_seconds <= 0:
            raise ConfigurationError("rate_window_seconds must be positive")

        try:
            self.backoff_policy()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def backoff_policy(self) -> BackoffPolicy:
        """Build the BackoffPolicy described by the backoff fields."""
        return BackoffPolicy(
            base_delay=self.backoff_base_delay,
            factor=self.backoff_factor,
            max_delay=self.backoff_max_delay,
        )


__all__ = ["ClientConfig"]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request executor for the Sekha SDK.

RequestExecutor performs one logical call per execute():

    Idle -> Admitted -> Attempting -> Succeeded
                            |
                            v
                     ClassifyFailure -> Retrying -> Admitted ...
                            |
                            v
                          Failed

Every attempt is admitted by the shared RateLimiter, runs under its own
CombinedCancellation (caller token + per-attempt timeout), and every failure
is handed to the classifier. Caller cancellation at any point (admission,
attempt, backoff) ends the call with a CANCELLED RequestError; no retry
follows. Outer task cancellation (asyncio.CancelledError) is never caught.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from typing_extensions import Self

from ..cancellation import (
    AbortReason,
    AttemptAborted,
    CancellationToken,
    CombinedCancellation,
    wait_or_cancel,
)
from ..exceptions import RequestError
from ..observability.collector import UnifiedMetricsCollector, get_metrics_collector
from ..observability.constants import (
    ACTIVE_REQUESTS,
    ATTEMPTS_TOTAL,
    RATE_LIMIT_ADMISSIONS_TOTAL,
    RATE_LIMIT_WAIT_SECONDS,
    REQUEST_DURATION_SECONDS,
    REQUEST_FAILURES_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
)
from ..ratelimit.sliding_window import RateLimiter
from ..retry.backoff import BackoffPolicy
from ..retry.classifier import (
    classify_exception,
    classify_status,
    classify_undecodable_body,
)
from ..streaming.source import StreamSource
from ..types.errors import ErrorClassification
from ..types.request import NO_CONTENT, AttemptRecord, RequestDescriptor
from .config import ClientConfig

logger = logging.getLogger(__name__)


class _AttemptFailed(Exception):
    """Internal: one attempt failed with the given classification."""

    def __init__(self, classification: ErrorClassification):
        super().__init__(classification.message)
        self.classification = classification


async def _discard_response(response: httpx.Response) -> None:
    await response.aclose()


class RequestExecutor:
    """
    Shared request engine used by every facade.

    Owns one httpx.AsyncClient and one RateLimiter. Several facades may share
    one executor; they then share its rate window and connection pool.

    Example:
        >>> config = ClientConfig(base_url="http://localhost:8080", credential=key)
        >>> async with RequestExecutor(config) as executor:
        ...     result = await executor.execute(RequestDescriptor("GET", "/health"))
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        rate_limiter: RateLimiter | None = None,
        backoff: BackoffPolicy | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        metrics: UnifiedMetricsCollector | None = None,
    ):
        """
        Initialize the executor.

        Args:
            config: Validated client configuration
            rate_limiter: Limiter to use (built from config by default)
            backoff: Backoff policy (built from config by default)
            client: Pre-built AsyncClient; the caller keeps ownership of it
            transport: Transport for the owned client (e.g. httpx.MockTransport)
            metrics: Metrics collector (process-wide collector by default,
                none when config.metrics_enabled is False)
        """
        self.config = config
        self.rate_limiter = rate_limiter or RateLimiter(
            limit=config.rate_limit, window=config.rate_window_seconds
        )
        self.backoff = backoff or config.backoff_policy()

        if metrics is None and config.metrics_enabled:
            metrics = get_metrics_collector()
        self.metrics = metrics

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )
        self._closed = False

        logger.info(
            f"RequestExecutor initialized for {config.base_url} "
            f"(max_attempts={config.max_attempts}, timeout={config.timeout}s, "
            f"rate={config.rate_limit}/{config.rate_window_seconds}s)"
        )

    # === Lifecycle ===

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Close the owned HTTP client. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            await self._client.aclose()
        logger.debug("RequestExecutor closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # === Execution ===

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """
        Perform one logical call with admission control and retries.

        Args:
            descriptor: What to send

        Returns:
            The decoded body, NO_CONTENT for an empty success, or a
            StreamSource when ``descriptor.stream`` is set

        Raises:
            RequestError: The call failed; ``kind`` tells how, ``attempts``
                how many attempts were made
            RuntimeError: If the executor has been closed
        """
        if self._closed:
            raise RuntimeError("RequestExecutor is closed")

        token = descriptor.cancel_token
        timeout = (
            descriptor.timeout
            if descriptor.timeout is not None
            else self.config.timeout
        )
        max_attempts = self.config.max_attempts
        verb_labels = {"verb": descriptor.verb}
        history: list[AttemptRecord] = []
        started = time.monotonic()

        self._inc_counter(REQUESTS_TOTAL, verb_labels)
        if self.metrics is not None:
            self.metrics.inc_gauge(ACTIVE_REQUESTS)

        try:
            for index in range(max_attempts):
                if not await self._admit(token):
                    raise self._cancelled(history)

                self._inc_counter(ATTEMPTS_TOTAL, verb_labels)
                attempt_started = time.monotonic()
                try:
                    result = await self._attempt(descriptor, timeout, index + 1)
                except _AttemptFailed as failure:
                    classification = failure.classification
                else:
                    history.append(
                        AttemptRecord(index, time.monotonic() - attempt_started)
                    )
                    logger.debug(
                        f"{descriptor.verb} {descriptor.path} succeeded "
                        f"on attempt {index + 1}"
                    )
                    return result

                history.append(
                    AttemptRecord(
                        index,
                        time.monotonic() - attempt_started,
                        error_kind=classification.kind,
                        status_code=classification.status_code,
                    )
                )

                if not classification.retryable or index + 1 >= max_attempts:
                    raise self._failed(classification, history) from classification.cause

                delay = self.backoff.delay_for(index)
                logger.warning(
                    f"{descriptor.verb} {descriptor.path} attempt "
                    f"{index + 1}/{max_attempts} failed "
                    f"({classification.kind.value}: {classification.message}), "
                    f"retrying in {delay:.2f}s"
                )
                self._inc_counter(RETRIES_TOTAL, {"kind": classification.kind.value})
                if not await wait_or_cancel(token, delay):
                    raise self._cancelled(history)

            # range(max_attempts) always returns or raises above
            raise AssertionError("unreachable")
        finally:
            if self.metrics is not None:
                self.metrics.dec_gauge(ACTIVE_REQUESTS)
                self.metrics.observe_histogram(
                    REQUEST_DURATION_SECONDS, time.monotonic() - started, verb_labels
                )

    async def _admit(self, token: CancellationToken | None) -> bool:
        """
        Wait for rate limit admission.

        Returns:
            False if the caller's token fired before admission was granted
        """
        if token is None:
            waited = await self.rate_limiter.acquire()
        else:
            try:
                waited = await CombinedCancellation(token, None).run(
                    self.rate_limiter.acquire()
                )
            except AttemptAborted:
                return False

        self._inc_counter(RATE_LIMIT_ADMISSIONS_TOTAL)
        if self.metrics is not None:
            self.metrics.observe_histogram(RATE_LIMIT_WAIT_SECONDS, waited)
        return True

    async def _attempt(
        self, descriptor: RequestDescriptor, timeout: float, attempts: int
    ) -> Any:
        """
        Run one attempt and decode its outcome.

        Raises:
            _AttemptFailed: With the classifier's verdict
        """
        signal = CombinedCancellation(descriptor.cancel_token, timeout)
        try:
            response = await signal.run(
                self._send(descriptor, timeout), discard=_discard_response
            )
        except (AttemptAborted, httpx.TransportError, OSError) as e:
            raise _AttemptFailed(classify_exception(e)) from e

        if not response.is_success:
            raise _AttemptFailed(
                classify_status(
                    response.status_code,
                    self._error_body(response),
                    response.reason_phrase,
                )
            )

        if descriptor.stream:
            return StreamSource(
                response,
                token=descriptor.cancel_token,
                attempts=attempts,
                metrics=self.metrics,
            )
        return self._decode_body(response)

    async def _send(
        self, descriptor: RequestDescriptor, timeout: float
    ) -> httpx.Response:
        """
        Send the request.

        The body is read and the response closed here, except for a
        successful streaming call whose body is handed to a StreamSource.
        """
        request = self._client.build_request(
            descriptor.verb,
            descriptor.path,
            params=dict(descriptor.params) if descriptor.params else None,
            json=descriptor.body if descriptor.has_body else None,
            headers=self._headers(descriptor),
            timeout=timeout,
        )
        response = await self._client.send(request, stream=True)
        if descriptor.stream and response.is_success:
            return response
        try:
            await response.aread()
        finally:
            await response.aclose()
        return response

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers = {
            "Accept": "text/event-stream" if descriptor.stream else "application/json",
            "User-Agent": self.config.user_agent,
        }
        if self.config.credential:
            headers["Authorization"] = f"Bearer {self.config.credential}"
        if descriptor.has_body:
            headers["Content-Type"] = "application/json"
        headers.update(descriptor.headers)
        return headers

    def _decode_body(self, response: httpx.Response) -> Any:
        """Decode a successful, fully read response."""
        if response.status_code == 204 or not response.content:
            return NO_CONTENT

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("text/"):
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise _AttemptFailed(
                classify_undecodable_body(response.status_code, e)
            ) from e

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # === Failure helpers ===

    def _failed(
        self, classification: ErrorClassification, history: list[AttemptRecord]
    ) -> RequestError:
        error = RequestError.from_classification(
            classification, attempts=len(history), history=tuple(history)
        )
        logger.debug(f"Request failed: {error}")
        self._inc_counter(REQUEST_FAILURES_TOTAL, {"kind": classification.kind.value})
        return error

    def _cancelled(self, history: list[AttemptRecord]) -> RequestError:
        return self._failed(
            classify_exception(AttemptAborted(AbortReason.CANCELLED)), history
        )

    def _inc_counter(self, name: str, labels: dict[str, str] | None = None) -> None:
        if self.metrics is not None:
            self.metrics.inc_counter(name, labels=labels)


__all__ = ["RequestExecutor"]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exponential backoff policy for pacing retries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Exponential backoff with a ceiling.

    ``delay_for(n) = min(base_delay * factor ** n, max_delay)``

    The policy only paces retries; the number of attempts is bounded by the
    executor. It is a pure function of the attempt index and its fields, so
    ``delay_for`` is non-decreasing in ``n`` and never exceeds ``max_delay``.

    Attributes:
        base_delay: Delay before the first retry in seconds
        factor: Growth factor per attempt (at least 1)
        max_delay: Upper bound on any single delay in seconds
    """

    base_delay: float = 0.5
    factor: float = 2.0
    max_delay: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.factor < 1:
            raise ValueError("factor must be at least 1")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be at least base_delay")

    def delay_for(self, attempt_index: int) -> float:
        """
        Delay to wait after the failed attempt ``attempt_index`` (0-based).

        Args:
            attempt_index: Index of the attempt that just failed

        Returns:
            Delay in seconds
        """
        if attempt_index < 0:
            raise ValueError("attempt_index must be non-negative")
        try:
            delay = self.base_delay * (self.factor**attempt_index)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)


__all__ = ["BackoffPolicy"]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Client-side request throttling."""

from .sliding_window import RateLimiter

__all__ = ["RateLimiter"]

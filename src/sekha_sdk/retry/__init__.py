# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry support: backoff pacing and failure classification.

The classifier decides whether a failed attempt may be retried; the backoff
policy decides how long to wait before the next one. The attempt bound itself
lives in the executor.
"""

from .backoff import BackoffPolicy
from .classifier import (
    classify_exception,
    classify_status,
    classify_undecodable_body,
    extract_message,
)

__all__ = [
    "BackoffPolicy",
    "classify_exception",
    "classify_status",
    "classify_undecodable_body",
    "extract_message",
]

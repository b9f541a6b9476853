# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request execution: configuration and the shared executor.
"""

from .config import ClientConfig
from .executor import RequestExecutor

__all__ = ["ClientConfig", "RequestExecutor"]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for Campus Ops.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    days_before,
    ensure_utc,
    start_of_day,
    start_of_month,
    utc_now,
)
from src.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    unbind_context,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "start_of_day",
    "start_of_month",
    "days_before",
]

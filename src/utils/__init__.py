# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the entitlement core.

This package contains cross-cutting utilities:
- logging: structlog setup with secret redaction
- datetime: UTC timestamps and access-window arithmetic
"""

from src.utils.datetime import days_from_now, ensure_utc, has_passed, utc_now
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "days_from_now",
    "has_passed",
]

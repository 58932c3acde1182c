# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the entitlement core.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.entitlement.paid_course_access_days
    365
"""

from src.core.config.settings import (
    DatabaseSettings,
    EntitlementSettings,
    PaymentGatewaySettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "PaymentGatewaySettings",
    "EntitlementSettings",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the entitlement service.

This package contains cross-cutting application wiring:
- config: Application configuration and settings
- container: Construction of repositories, gateway and domain services
"""

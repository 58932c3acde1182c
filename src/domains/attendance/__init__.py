# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package."""

from src.domains.attendance.service import AttendanceConflictError, AttendanceService

__all__ = ["AttendanceService", "AttendanceConflictError"]

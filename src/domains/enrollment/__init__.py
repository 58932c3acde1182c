# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides course enrollment functionality including:
- Free and paid enrollment
- Payment completion with signature verification
- Cancellation of pending enrollments
- Video progress tracking and validity checks
"""

from src.domains.enrollment.service import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    EnrollmentCheckout,
    EnrollmentNotFoundError,
    EnrollmentService,
    InvalidEnrollmentStateError,
    StudentNotFoundError,
)

__all__ = [
    "EnrollmentService",
    "EnrollmentCheckout",
    "CourseNotFoundError",
    "StudentNotFoundError",
    "EnrollmentNotFoundError",
    "AlreadyEnrolledError",
    "InvalidEnrollmentStateError",
]

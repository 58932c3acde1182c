# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure enrollment rules over loaded entities."""

from datetime import datetime

from src.infrastructure.database.models import Course, Enrollment
from src.models.common import EnrollmentStatus
from src.utils.datetime import has_passed


def effective_status(enrollment: Enrollment, now: datetime | None = None) -> EnrollmentStatus:
    """Stored status, with enrolled records past expiry reported as expired."""
    if enrollment.enrollment_status == EnrollmentStatus.ENROLLED and has_passed(
        enrollment.expires_at, now
    ):
        return EnrollmentStatus.EXPIRED
    return enrollment.enrollment_status


def is_expired(enrollment: Enrollment, now: datetime | None = None) -> bool:
    return effective_status(enrollment, now) == EnrollmentStatus.EXPIRED


def is_valid_enrollment(enrollment: Enrollment | None, now: datetime | None = None) -> bool:
    """Enrolled, active and not past expiry."""
    if enrollment is None or not enrollment.is_active:
        return False
    return effective_status(enrollment, now) == EnrollmentStatus.ENROLLED


def blocks_new_enrollment(enrollment: Enrollment) -> bool:
    """Pending and enrolled records (expired included) block a new enrollment."""
    return enrollment.enrollment_status in (EnrollmentStatus.PENDING, EnrollmentStatus.ENROLLED)


def overall_progress(enrollment: Enrollment, course: Course) -> float:
    """Completed videos over the course's video count, capped at 100."""
    if not course.total_videos:
        return 0.0
    percentage = len(enrollment.progress) / course.total_videos * 100
    return round(min(percentage, 100.0), 2)

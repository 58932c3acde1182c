# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment response models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import CourseMode, CourseType, EnrollmentPaymentStatus, EnrollmentStatus


class ProgressEntryView(BaseModel):
    """Watch progress of one video."""

    model_config = ConfigDict(from_attributes=True)

    video_id: str
    watch_time: int
    completed_at: datetime


class EnrollmentView(BaseModel):
    """Enrollment as returned to callers.

    ``status`` is the effective status: an enrolled record past its
    expiry reads as expired even though the stored status is enrolled.
    """

    id: str
    student_id: str
    course_id: str
    course_type: CourseType
    status: EnrollmentStatus
    payment_status: EnrollmentPaymentStatus
    mode: CourseMode
    schedule: str
    amount: Decimal
    currency: str
    gateway_order_id: str | None = None
    enrolled_at: datetime
    paid_at: datetime | None = None
    expires_at: datetime | None = None
    last_accessed_at: datetime | None = None
    overall_progress: float = 0.0
    progress: list[ProgressEntryView] = Field(default_factory=list)

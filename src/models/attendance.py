# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance request and response models."""

from pydantic import BaseModel, Field

from src.models.common import AttendanceStatus


class AttendanceMark(BaseModel):
    """Status of one student on a sheet."""

    student_id: str = Field(min_length=1)
    status: AttendanceStatus


class AttendanceStats(BaseModel):
    """A student's attendance in one batch subject.

    ``total`` counts held classes only (present + absent); no_class days
    are reported but excluded from the percentage.
    """

    student_id: str
    batch_id: str
    subject_name: str
    present: int
    absent: int
    no_class: int
    total: int
    percentage: float

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment request and response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class AssessmentCreateRequest(BaseModel):
    """Request to create a test for one batch, class and subject.

    Range and scheduling rules (full marks 1-1000, future due date) are
    checked by AssessmentService so they surface as domain errors.
    """

    batch_id: str = Field(min_length=1)
    class_name: str
    subject_name: str
    title: str = Field(max_length=200)
    full_marks: int
    due_date: datetime | None = None
    instructions: str = ""

    @field_validator("class_name", "subject_name", "title", "instructions")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class AssessmentStatistics(BaseModel):
    """Statistics recomputed from the current student slots."""

    total_students: int
    submitted: int
    evaluated: int
    pending_submission: int
    pending_evaluation: int
    completion_rate: float
    evaluation_rate: float
    average_marks: float = 0.0
    average_percentage: float = 0.0
    highest_marks: int | None = None
    lowest_marks: int | None = None


class StudentPerformance(BaseModel):
    """One student's result on a test."""

    assessment_id: str
    student_id: str
    title: str
    class_name: str
    subject_name: str
    full_marks: int
    marks_scored: int | None = None
    percentage: float | None = None
    submitted_at: datetime | None = None
    evaluated_at: datetime | None = None
    status: Literal["pending", "submitted", "evaluated"]
    is_late: bool = False

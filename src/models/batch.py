# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch request and response models.

Request models normalize their input (trimming, dropping empty labels,
de-duplicating); business rules are enforced by BatchAssignmentService.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.common import BatchCategory


def normalize_labels(values: list[str] | None) -> list[str]:
    """Trim labels, drop empty ones and remove duplicates keeping order."""
    seen: dict[str, None] = {}
    for value in values or []:
        label = value.strip()
        if label:
            seen.setdefault(label, None)
    return list(seen)


class SubjectInput(BaseModel):
    """Subject definition within a batch request."""

    name: str
    teacher_id: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("teacher_id")
    @classmethod
    def blank_teacher_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


def normalize_subjects(values: list[SubjectInput] | None) -> list[SubjectInput]:
    """Drop unnamed subjects and keep the first definition of each name."""
    by_name: dict[str, SubjectInput] = {}
    for subject in values or []:
        if subject.name:
            by_name.setdefault(subject.name, subject)
    return list(by_name.values())


class BatchCreateRequest(BaseModel):
    """Request to create a batch."""

    name: str = Field(max_length=200)
    category: BatchCategory
    classes: list[str] = Field(default_factory=list)
    subjects: list[SubjectInput] = Field(default_factory=list)
    schedule: str = ""
    description: str = ""

    @field_validator("name", "schedule", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("classes")
    @classmethod
    def clean_classes(cls, v: list[str]) -> list[str]:
        return normalize_labels(v)

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: list[SubjectInput]) -> list[SubjectInput]:
        return normalize_subjects(v)


class BatchUpdateRequest(BaseModel):
    """Partial batch update. Fields left as None are unchanged."""

    name: str | None = Field(default=None, max_length=200)
    category: BatchCategory | None = None
    classes: list[str] | None = None
    subjects: list[SubjectInput] | None = None
    schedule: str | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("name", "schedule", "description")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None

    @field_validator("classes")
    @classmethod
    def clean_classes(cls, v: list[str] | None) -> list[str] | None:
        return normalize_labels(v) if v is not None else None

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: list[SubjectInput] | None) -> list[SubjectInput] | None:
        return normalize_subjects(v) if v is not None else None


class StudentAssignmentInput(BaseModel):
    """One student to add to a batch with class and subject scope."""

    student_id: str = Field(min_length=1)
    assigned_classes: list[str] = Field(default_factory=list)
    assigned_subjects: list[str] = Field(default_factory=list)

    @field_validator("assigned_classes", "assigned_subjects")
    @classmethod
    def clean_labels(cls, v: list[str]) -> list[str]:
        return normalize_labels(v)


class AssignmentResult(BaseModel):
    """Outcome of an assign_students call."""

    added: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class BatchStatistics(BaseModel):
    """Derived counts for one batch."""

    total_students: int
    total_subjects: int
    total_classes: int
    subjects_with_teacher: int
    subjects_without_teacher: int


class TeacherSubjectView(BaseModel):
    """Subject as seen by its teacher."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class TeacherBatchView(BaseModel):
    """Batch restricted to the subjects one teacher teaches."""

    batch_id: str
    name: str
    category: BatchCategory
    classes: list[str]
    subjects: list[TeacherSubjectView]
    student_count: int
    created_at: datetime

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch-scoped test models.

A test targets one (batch, class, subject) triple and is assigned only to
students eligible for it.
"""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin, UTCDateTime
from src.utils.datetime import utc_now


class Assessment(IdMixin, TimestampMixin, Base):
    """A test created by the teacher of a subject in a batch."""

    __tablename__ = "assessments"
    __table_args__ = (
        Index("ix_assessments_batch_class_subject", "batch_id", "class_name", "subject_name"),
    )

    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.id"), nullable=False)
    class_name: Mapped[str] = mapped_column(String(50), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    full_marks: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    instructions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    students: Mapped[list["AssessmentStudent"]] = relationship(
        back_populates="assessment",
        cascade="all, delete-orphan",
        order_by="AssessmentStudent.assigned_at",
    )


class AssessmentStudent(IdMixin, Base):
    """A student's slot on a test: submission and marks."""

    __tablename__ = "assessment_students"
    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_assessment_students"),
    )

    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    marks_scored: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    evaluated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    assessment: Mapped[Assessment] = relationship(back_populates="students")

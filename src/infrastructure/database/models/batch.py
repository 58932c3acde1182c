# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch, subject and student assignment models.

A batch owns its subjects and its student assignments. Each assignment
keeps a snapshot of the subjects it covers (name and current teacher), so
eligibility can be answered from the assignment rows alone.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    IdMixin,
    TimestampMixin,
    UTCDateTime,
    enum_column,
)
from src.models.common import BatchCategory
from src.utils.datetime import utc_now


class Batch(IdMixin, TimestampMixin, Base):
    """A cohort of students taught a set of subjects across class labels."""

    __tablename__ = "batches"
    __table_args__ = (
        Index("ix_batches_category_active", "category", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    category: Mapped[BatchCategory] = mapped_column(
        enum_column(BatchCategory, "batch_category"), nullable=False
    )
    classes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    schedule: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    subjects: Mapped[list["BatchSubject"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="BatchSubject.name",
    )
    student_assignments: Mapped[list["StudentAssignment"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="StudentAssignment.enrolled_at",
    )

    def subject_named(self, name: str) -> "BatchSubject | None":
        """Find a subject by exact name."""
        for subject in self.subjects:
            if subject.name == name:
                return subject
        return None


class BatchSubject(IdMixin, Base):
    """Subject taught in a batch, optionally by a teacher."""

    __tablename__ = "batch_subjects"
    __table_args__ = (
        UniqueConstraint("batch_id", "name", name="uq_batch_subjects_batch_name"),
    )

    batch_id: Mapped[str] = mapped_column(
        ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )

    batch: Mapped[Batch] = relationship(back_populates="subjects")


class StudentAssignment(IdMixin, Base):
    """A student's membership in a batch with class and subject scope."""

    __tablename__ = "batch_student_assignments"
    __table_args__ = (
        UniqueConstraint("batch_id", "student_id", name="uq_batch_student_assignments"),
    )

    batch_id: Mapped[str] = mapped_column(
        ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    assigned_classes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    enrolled_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    batch: Mapped[Batch] = relationship(back_populates="student_assignments")
    subjects: Mapped[list["AssignedSubject"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="AssignedSubject.subject_name",
    )

    def covers(self, class_name: str, subject_name: str) -> bool:
        """Check whether this assignment includes the class and subject."""
        return class_name in self.assigned_classes and any(
            s.subject_name == subject_name for s in self.subjects
        )


class AssignedSubject(IdMixin, Base):
    """Denormalized subject snapshot held by a student assignment.

    subject_id is nulled when the subject is removed from the batch; the
    snapshot name keeps answering eligibility until the assignment is
    edited.
    """

    __tablename__ = "batch_assigned_subjects"
    __table_args__ = (
        UniqueConstraint("assignment_id", "subject_name", name="uq_assigned_subjects"),
    )

    assignment_id: Mapped[str] = mapped_column(
        ForeignKey("batch_student_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[str | None] = mapped_column(
        ForeignKey("batch_subjects.id", ondelete="SET NULL"), nullable=True, index=True
    )
    subject_name: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    assignment: Mapped[StudentAssignment] = relationship(back_populates="subjects")

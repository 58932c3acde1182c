# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch assignment service.

This module provides the BatchAssignmentService class for:
- Batch creation, update and soft deletion
- Adding and removing students with class and subject scope
- Assigning subject teachers (refreshing every student snapshot)
- Eligibility queries used by tests, attendance and access control
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.errors import ConflictError, NotFoundError, ValidationError
from src.infrastructure.database.models import (
    AssignedSubject,
    Batch,
    BatchSubject,
    StudentAssignment,
    User,
)
from src.infrastructure.database.repositories import BatchRepository, UserRepository
from src.models.batch import (
    AssignmentResult,
    BatchCreateRequest,
    BatchStatistics,
    BatchUpdateRequest,
    StudentAssignmentInput,
    SubjectInput,
    TeacherBatchView,
    TeacherSubjectView,
)
from src.models.common import BatchCategory, UserRole

logger = logging.getLogger(__name__)


class BatchNotFoundError(NotFoundError):
    """Raised when a batch does not exist."""


class SubjectNotFoundError(NotFoundError):
    """Raised when a subject does not belong to the batch."""


class DuplicateBatchError(ConflictError):
    """Raised when a batch name is already taken."""


class AssignmentConflictError(ConflictError):
    """Raised when a concurrent writer created the same assignment."""

    retryable = True


class BatchAssignmentService:
    """Service for batch membership and eligibility.

    Every mutating method is one transaction: it validates everything
    first, then writes, then commits. Nothing is written on error.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize batch assignment service.

        Args:
            db: Async database session.
        """
        self.db = db
        self.batches = BatchRepository(db)
        self.users = UserRepository(db)

    # =========================================================================
    # Batch lifecycle
    # =========================================================================

    async def create_batch(self, request: BatchCreateRequest, created_by: str) -> Batch:
        """Create a batch with its subjects.

        Args:
            request: Normalized batch definition.
            created_by: ID of the admin or teacher creating the batch.

        Returns:
            The created batch with subjects loaded.

        Raises:
            ValidationError: If no class is given or a teacher is invalid.
            DuplicateBatchError: If the name is taken.
        """
        if not request.name:
            raise ValidationError("Batch name is required", field="name")
        if not request.classes:
            raise ValidationError("At least one class is required", field="classes")
        await self._validate_teachers(request.subjects)

        if await self.batches.get_by_name(request.name) is not None:
            raise DuplicateBatchError(
                f"Batch name already exists: {request.name}",
                details={"name": request.name},
            )

        batch = Batch(
            name=request.name,
            category=request.category,
            classes=list(request.classes),
            schedule=request.schedule,
            description=request.description,
            created_by=created_by,
            is_active=True,
            subjects=[
                BatchSubject(name=s.name, teacher_id=s.teacher_id) for s in request.subjects
            ],
        )
        self.batches.add(batch)
        await self._commit_or_conflict(f"Batch name already exists: {request.name}")

        logger.info("Created batch: id=%s, name=%s, by=%s", batch.id, batch.name, created_by)
        return await self.get_batch(batch.id)

    async def get_batch(self, batch_id: str) -> Batch:
        """Load a batch with subjects and assignments.

        Raises:
            BatchNotFoundError: If the batch does not exist.
        """
        batch = await self.batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(
                f"Batch not found: {batch_id}", details={"batch_id": batch_id}
            )
        return batch

    async def list_batches(
        self,
        category: BatchCategory | None = None,
        active_only: bool = True,
    ) -> list[Batch]:
        return await self.batches.list_all(category=category, active_only=active_only)

    async def update_batch(self, batch_id: str, request: BatchUpdateRequest) -> Batch:
        """Partially update a batch.

        Subjects are matched by name: new names are added, existing names
        get the requested teacher, missing names are removed. Students keep
        their snapshot of a removed subject.

        Raises:
            BatchNotFoundError: If the batch does not exist.
            ValidationError: If classes would be empty or a teacher is invalid.
            DuplicateBatchError: If the new name is taken.
        """
        batch = await self.get_batch(batch_id)

        renamed = request.name is not None and request.name != batch.name
        if renamed:
            if not request.name:
                raise ValidationError("Batch name is required", field="name")
            if await self.batches.get_by_name(request.name) is not None:
                raise DuplicateBatchError(
                    f"Batch name already exists: {request.name}",
                    details={"name": request.name},
                )
        if request.classes is not None and not request.classes:
            raise ValidationError("At least one class is required", field="classes")
        if request.subjects is not None:
            await self._validate_teachers(request.subjects)

        # Validation done; attribute changes from here on are committed together
        if renamed:
            batch.name = request.name
        if request.classes is not None:
            batch.classes = list(request.classes)
        if request.subjects is not None:
            await self._sync_subjects(batch, request.subjects)

        if request.category is not None:
            batch.category = request.category
        if request.schedule is not None:
            batch.schedule = request.schedule
        if request.description is not None:
            batch.description = request.description
        if request.is_active is not None:
            batch.is_active = request.is_active

        await self._commit_or_conflict(f"Batch update conflicted: {batch_id}")
        logger.info("Updated batch: id=%s", batch_id)
        return await self.get_batch(batch_id)

    async def deactivate_batch(self, batch_id: str) -> Batch:
        """Soft delete a batch. Batches are never hard-deleted."""
        batch = await self.get_batch(batch_id)
        batch.is_active = False
        await self.db.commit()
        logger.info("Deactivated batch: id=%s", batch_id)
        return batch

    # =========================================================================
    # Student assignment
    # =========================================================================

    async def assign_students(
        self,
        batch_id: str,
        assignments: list[StudentAssignmentInput],
    ) -> AssignmentResult:
        """Add students to a batch.

        Students already in the batch are skipped. Every remaining entry is
        validated before anything is written; one invalid entry fails the
        whole call.

        Args:
            batch_id: Batch identifier.
            assignments: Students with their class and subject scope.

        Returns:
            The added and skipped student ids.

        Raises:
            BatchNotFoundError: If the batch does not exist.
            ValidationError: If a student, class or subject is invalid.
            AssignmentConflictError: If a concurrent call added the same student.
        """
        batch = await self.get_batch(batch_id)
        existing = {a.student_id for a in batch.student_assignments}

        result = AssignmentResult()
        pending: list[StudentAssignmentInput] = []
        seen: set[str] = set()
        for entry in assignments:
            if entry.student_id in existing or entry.student_id in seen:
                result.skipped.append(entry.student_id)
                continue
            seen.add(entry.student_id)
            pending.append(entry)

        students = await self.users.get_many(e.student_id for e in pending)
        new_rows: list[StudentAssignment] = []
        for index, entry in enumerate(pending):
            self._require_student(students.get(entry.student_id), entry.student_id, index)
            new_rows.append(self._build_assignment(batch, entry, index))

        for row in new_rows:
            self.db.add(row)
            result.added.append(row.student_id)

        if new_rows:
            await self._commit_or_conflict(
                f"Student assignment conflicted in batch {batch_id}",
                error_cls=AssignmentConflictError,
            )
            logger.info(
                "Assigned students: batch=%s, added=%d, skipped=%d",
                batch_id,
                len(result.added),
                len(result.skipped),
            )
        return result

    async def remove_students(self, batch_id: str, student_ids: Iterable[str]) -> int:
        """Remove students from a batch.

        Returns:
            Number of assignments removed; 0 when none matched.

        Raises:
            BatchNotFoundError: If the batch does not exist.
        """
        await self.get_batch(batch_id)
        removed = await self.batches.delete_assignments(batch_id, student_ids)
        await self.db.commit()
        if removed:
            logger.info("Removed students: batch=%s, count=%d", batch_id, removed)
        return removed

    async def assign_teacher(
        self,
        batch_id: str,
        subject_id: str,
        teacher_id: str | None,
    ) -> BatchSubject:
        """Set or clear a subject's teacher.

        Every student snapshot of the subject is refreshed in the same
        transaction as the subject row.

        Raises:
            BatchNotFoundError: If the batch does not exist.
            SubjectNotFoundError: If the subject is not in the batch.
            ValidationError: If the user is not a teacher.
        """
        await self.get_batch(batch_id)
        subject = await self.batches.get_subject(batch_id, subject_id)
        if subject is None:
            raise SubjectNotFoundError(
                f"Subject not found in batch: {subject_id}",
                details={"batch_id": batch_id, "subject_id": subject_id},
            )
        if teacher_id is not None:
            await self._require_teacher(teacher_id, field="teacher_id")

        subject.teacher_id = teacher_id
        refreshed = await self.batches.refresh_subject_snapshots(batch_id, subject.name, teacher_id)
        await self.db.commit()

        logger.info(
            "Teacher reassigned: batch=%s, subject=%s, teacher=%s, snapshots=%d",
            batch_id,
            subject.name,
            teacher_id,
            refreshed,
        )
        return subject

    # =========================================================================
    # Queries
    # =========================================================================

    async def eligible_students(
        self,
        batch_id: str,
        class_name: str,
        subject_name: str,
    ) -> set[str]:
        """Students assigned to both the class and the subject in an active batch."""
        rows = await self.batches.assignments_with_subject(batch_id, subject_name)
        return {row.student_id for row in rows if row.covers(class_name, subject_name)}

    async def subject_students(self, batch_id: str, subject_name: str) -> set[str]:
        """Students of an active batch assigned the subject in any class."""
        rows = await self.batches.assignments_with_subject(batch_id, subject_name)
        return {row.student_id for row in rows}

    async def teacher_batches(self, teacher_id: str) -> list[TeacherBatchView]:
        """Active batches where the teacher teaches, limited to their subjects."""
        views = []
        for batch in await self.batches.list_taught_by(teacher_id):
            taught = [s for s in batch.subjects if s.teacher_id == teacher_id]
            views.append(
                TeacherBatchView(
                    batch_id=batch.id,
                    name=batch.name,
                    category=batch.category,
                    classes=list(batch.classes),
                    subjects=[TeacherSubjectView.model_validate(s) for s in taught],
                    student_count=len(batch.student_assignments),
                    created_at=batch.created_at,
                )
            )
        return views

    async def teacher_teaches(self, batch_id: str, teacher_id: str, subject_name: str) -> bool:
        """Whether the teacher holds the subject in an active batch."""
        subject = await self.batches.get_subject_by_name(batch_id, subject_name, active_only=True)
        return subject is not None and subject.teacher_id == teacher_id

    async def statistics(self, batch_id: str) -> BatchStatistics:
        batch = await self.get_batch(batch_id)
        with_teacher = sum(1 for s in batch.subjects if s.teacher_id)
        return BatchStatistics(
            total_students=len(batch.student_assignments),
            total_subjects=len(batch.subjects),
            total_classes=len(batch.classes),
            subjects_with_teacher=with_teacher,
            subjects_without_teacher=len(batch.subjects) - with_teacher,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_assignment(
        self,
        batch: Batch,
        entry: StudentAssignmentInput,
        index: int,
    ) -> StudentAssignment:
        unknown_classes = [c for c in entry.assigned_classes if c not in batch.classes]
        if unknown_classes:
            raise ValidationError(
                f"Classes not in batch: {', '.join(unknown_classes)}",
                field=f"assignments[{index}].assigned_classes",
                details={"student_id": entry.student_id, "invalid": unknown_classes},
            )

        snapshots = []
        unknown_subjects = []
        for name in entry.assigned_subjects:
            subject = batch.subject_named(name)
            if subject is None:
                unknown_subjects.append(name)
                continue
            snapshots.append(
                AssignedSubject(
                    subject_id=subject.id,
                    subject_name=subject.name,
                    teacher_id=subject.teacher_id,
                )
            )
        if unknown_subjects:
            raise ValidationError(
                f"Subjects not in batch: {', '.join(unknown_subjects)}",
                field=f"assignments[{index}].assigned_subjects",
                details={"student_id": entry.student_id, "invalid": unknown_subjects},
            )

        return StudentAssignment(
            batch_id=batch.id,
            student_id=entry.student_id,
            assigned_classes=list(entry.assigned_classes),
            subjects=snapshots,
        )

    @staticmethod
    def _require_student(user: User | None, student_id: str, index: int) -> None:
        if user is None or not user.is_active or user.role != UserRole.USER:
            raise ValidationError(
                f"Invalid student: {student_id}",
                field=f"assignments[{index}].student_id",
                details={"student_id": student_id},
            )

    async def _require_teacher(self, teacher_id: str, field: str) -> User:
        teacher = await self.users.get(teacher_id)
        if teacher is None or not teacher.is_active or teacher.role != UserRole.TEACHER:
            raise ValidationError(
                f"Invalid teacher: {teacher_id}",
                field=field,
                details={"teacher_id": teacher_id},
            )
        return teacher

    async def _validate_teachers(self, subjects: list[SubjectInput]) -> None:
        for index, subject in enumerate(subjects):
            if subject.teacher_id is not None:
                await self._require_teacher(
                    subject.teacher_id, field=f"subjects[{index}].teacher_id"
                )

    async def _sync_subjects(self, batch: Batch, subjects: list[SubjectInput]) -> None:
        wanted = {s.name: s for s in subjects}
        removed = [s for s in batch.subjects if s.name not in wanted]
        await self.batches.detach_subject_snapshots(s.id for s in removed)
        for subject in removed:
            batch.subjects.remove(subject)

        for name, target in wanted.items():
            current = batch.subject_named(name)
            if current is None:
                batch.subjects.append(BatchSubject(name=name, teacher_id=target.teacher_id))
            elif current.teacher_id != target.teacher_id:
                current.teacher_id = target.teacher_id
                await self.batches.refresh_subject_snapshots(batch.id, name, target.teacher_id)

    async def _commit_or_conflict(
        self,
        message: str,
        error_cls: type[ConflictError] = DuplicateBatchError,
    ) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("Integrity conflict: %s", message)
            raise error_cls(message) from e

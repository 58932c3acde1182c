# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment service for batch tests.

This module provides the AssessmentService class for:
- Creating a test for a batch class and subject
- Assigning eligible students (all or nothing)
- Recording submissions and marks
- Test statistics and per-student performance
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.assessment.statistics import compute_statistics, student_performance
from src.domains.batch.service import BatchAssignmentService
from src.domains.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from src.infrastructure.database.models import Assessment, AssessmentStudent
from src.infrastructure.database.repositories import AssessmentRepository
from src.models.assessment import AssessmentCreateRequest, AssessmentStatistics, StudentPerformance
from src.models.batch import AssignmentResult
from src.models.common import DenyReason
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

MIN_FULL_MARKS = 1
MAX_FULL_MARKS = 1000


class AssessmentNotFoundError(NotFoundError):
    """Raised when a test is not found."""


class StudentNotAssignedError(NotFoundError):
    """Raised when a student has no slot on the test."""


class AssessmentAssignmentConflictError(ConflictError):
    """Raised when a concurrent call assigned the same student."""

    retryable = True


class AssessmentService:
    """Service for batch tests.

    Eligibility always comes from BatchAssignmentService.eligible_students,
    so a test can only reach students assigned to its class and subject.

    Attributes:
        db: Async database session.
        batches: Batch service used for eligibility and teaching checks.
    """

    def __init__(self, db: AsyncSession, batches: BatchAssignmentService) -> None:
        self.db = db
        self.batches = batches
        self.assessments = AssessmentRepository(db)

    async def create_assessment(
        self,
        request: AssessmentCreateRequest,
        created_by: str,
    ) -> Assessment:
        """Create a test.

        Args:
            request: Test definition.
            created_by: Teacher creating the test.

        Returns:
            The created test.

        Raises:
            ValidationError: If marks, due date, batch, class or subject are invalid.
            BatchNotFoundError: If the batch does not exist.
            AccessDeniedError: If the creator does not teach the subject in the batch.
        """
        if not request.title:
            raise ValidationError("Test title is required", field="title")
        if not MIN_FULL_MARKS <= request.full_marks <= MAX_FULL_MARKS:
            raise ValidationError(
                f"Full marks must be between {MIN_FULL_MARKS} and {MAX_FULL_MARKS}",
                field="full_marks",
            )
        due_date = ensure_utc(request.due_date)
        if due_date is not None and due_date <= utc_now():
            raise ValidationError("Due date must be in the future", field="due_date")

        batch = await self.batches.get_batch(request.batch_id)
        if not batch.is_active:
            raise ValidationError("Batch is not active", field="batch_id")
        if request.class_name not in batch.classes:
            raise ValidationError(
                f"Class not in batch: {request.class_name}", field="class_name"
            )
        if batch.subject_named(request.subject_name) is None:
            raise ValidationError(
                f"Subject not in batch: {request.subject_name}", field="subject_name"
            )
        if not await self.batches.teacher_teaches(batch.id, created_by, request.subject_name):
            raise AccessDeniedError(
                "Only the subject teacher can create tests for this subject",
                reason=DenyReason.NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT.value,
                details={"batch_id": batch.id, "subject_name": request.subject_name},
            )

        assessment = self.assessments.add(
            Assessment(
                batch_id=batch.id,
                class_name=request.class_name,
                subject_name=request.subject_name,
                title=request.title,
                full_marks=request.full_marks,
                created_by=created_by,
                due_date=due_date,
                instructions=request.instructions,
                is_active=True,
            )
        )
        await self.db.commit()
        logger.info(
            "Test created: id=%s, batch=%s, class=%s, subject=%s, by=%s",
            assessment.id,
            batch.id,
            request.class_name,
            request.subject_name,
            created_by,
        )
        return await self.get_assessment(assessment.id)

    async def get_assessment(self, assessment_id: str) -> Assessment:
        assessment = await self.assessments.get(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(
                f"Test not found: {assessment_id}", details={"assessment_id": assessment_id}
            )
        return assessment

    async def list_batch_assessments(self, batch_id: str) -> list[Assessment]:
        return await self.assessments.list_for_batch(batch_id)

    async def assign_students(
        self,
        assessment_id: str,
        student_ids: Iterable[str],
    ) -> AssignmentResult:
        """Assign students to a test.

        Every id must be eligible for the test's batch, class and subject.
        One ineligible id fails the whole call with nothing written.

        Raises:
            AssessmentNotFoundError: If the test does not exist.
            ValidationError: If any student is not eligible.
        """
        assessment = await self.get_assessment(assessment_id)
        requested = list(dict.fromkeys(student_ids))

        eligible = await self._eligible(assessment)
        invalid = [sid for sid in requested if sid not in eligible]
        if invalid:
            raise ValidationError(
                "Students are not eligible for this test",
                field="student_ids",
                details={"invalid": invalid},
            )

        assigned = {slot.student_id for slot in assessment.students}
        result = AssignmentResult()
        for student_id in requested:
            if student_id in assigned:
                result.skipped.append(student_id)
                continue
            self.db.add(AssessmentStudent(assessment_id=assessment_id, student_id=student_id))
            result.added.append(student_id)

        if result.added:
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                raise AssessmentAssignmentConflictError(
                    "Test assignment conflicted with a concurrent update",
                    details={"assessment_id": assessment_id},
                ) from e
            logger.info(
                "Students assigned to test: test=%s, added=%d, skipped=%d",
                assessment_id,
                len(result.added),
                len(result.skipped),
            )
        return result

    async def submit(self, assessment_id: str, student_id: str) -> AssessmentStudent:
        """Mark a student's test as submitted. Re-submitting keeps the first time."""
        slot = await self._get_slot(assessment_id, student_id)
        if slot.submitted_at is None:
            slot.submitted_at = utc_now()
            await self.db.commit()
            logger.info("Test submitted: test=%s, student=%s", assessment_id, student_id)
        return slot

    async def record_marks(
        self,
        assessment_id: str,
        student_id: str,
        marks: int,
    ) -> AssessmentStudent:
        """Record marks for a student.

        Raises:
            AssessmentNotFoundError: If the test does not exist.
            StudentNotAssignedError: If the student is not on the test.
            ValidationError: If marks are outside 0..full_marks.
        """
        assessment = await self.get_assessment(assessment_id)
        if not 0 <= marks <= assessment.full_marks:
            raise ValidationError(
                f"Marks must be between 0 and {assessment.full_marks}",
                field="marks",
            )
        slot = await self._get_slot(assessment_id, student_id)
        slot.marks_scored = marks
        slot.evaluated_at = utc_now()
        await self.db.commit()
        logger.info(
            "Marks recorded: test=%s, student=%s, marks=%d",
            assessment_id,
            student_id,
            marks,
        )
        return slot

    async def statistics(self, assessment_id: str) -> AssessmentStatistics:
        return compute_statistics(await self.get_assessment(assessment_id))

    async def student_performance(self, assessment_id: str, student_id: str) -> StudentPerformance:
        assessment = await self.get_assessment(assessment_id)
        slot = await self._get_slot(assessment_id, student_id)
        return student_performance(assessment, slot)

    async def available_students(self, assessment_id: str) -> set[str]:
        """Eligible students not yet assigned to the test."""
        assessment = await self.get_assessment(assessment_id)
        assigned = {slot.student_id for slot in assessment.students}
        return await self._eligible(assessment) - assigned

    async def _eligible(self, assessment: Assessment) -> set[str]:
        return await self.batches.eligible_students(
            assessment.batch_id, assessment.class_name, assessment.subject_name
        )

    async def _get_slot(self, assessment_id: str, student_id: str) -> AssessmentStudent:
        slot = await self.assessments.get_slot(assessment_id, student_id)
        if slot is None:
            raise StudentNotAssignedError(
                "Student is not assigned to this test",
                details={"assessment_id": assessment_id, "student_id": student_id},
            )
        return slot

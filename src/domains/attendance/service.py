# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service.

Subject teachers mark attendance once per batch, subject and day;
marking the same day again replaces the sheet's entries.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.batch.service import BatchAssignmentService
from src.domains.errors import AccessDeniedError, ConflictError, ValidationError
from src.infrastructure.database.models import AttendanceEntry, AttendanceSheet
from src.infrastructure.database.repositories import AttendanceRepository
from src.models.attendance import AttendanceMark, AttendanceStats
from src.models.common import AttendanceStatus, DenyReason
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AttendanceConflictError(ConflictError):
    """Raised when two teachers mark the same sheet concurrently."""

    retryable = True


class AttendanceService:
    """Service for attendance sheets.

    Attributes:
        db: Async database session.
        batches: Batch service for teaching and eligibility checks.
    """

    def __init__(self, db: AsyncSession, batches: BatchAssignmentService) -> None:
        self.db = db
        self.batches = batches
        self.sheets = AttendanceRepository(db)

    async def mark_attendance(
        self,
        batch_id: str,
        subject_name: str,
        day: date,
        entries: list[AttendanceMark],
        teacher_id: str,
    ) -> AttendanceSheet:
        """Create or replace the attendance sheet for a day.

        Args:
            batch_id: Batch identifier.
            subject_name: Subject the class was held for.
            day: Calendar day of the class.
            entries: One status per student.
            teacher_id: Teacher marking the sheet.

        Returns:
            The stored sheet with its entries.

        Raises:
            BatchNotFoundError: If the batch does not exist.
            AccessDeniedError: If the teacher does not teach the subject.
            ValidationError: If a student is listed twice or is not in the subject.
        """
        subject_name = subject_name.strip()
        await self.batches.get_batch(batch_id)
        if not await self.batches.teacher_teaches(batch_id, teacher_id, subject_name):
            raise AccessDeniedError(
                "Only the subject teacher can mark attendance",
                reason=DenyReason.NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT.value,
                details={"batch_id": batch_id, "subject_name": subject_name},
            )

        student_ids = [e.student_id for e in entries]
        duplicates = sorted({sid for sid in student_ids if student_ids.count(sid) > 1})
        if duplicates:
            raise ValidationError(
                "Students listed more than once",
                field="entries",
                details={"invalid": duplicates},
            )
        enrolled = await self.batches.subject_students(batch_id, subject_name)
        invalid = [sid for sid in student_ids if sid not in enrolled]
        if invalid:
            raise ValidationError(
                "Students are not assigned to this subject",
                field="entries",
                details={"invalid": invalid},
            )

        now = utc_now()
        sheet = await self.sheets.get_for_day(batch_id, subject_name, day)
        if sheet is None:
            sheet = self.sheets.add(
                AttendanceSheet(
                    batch_id=batch_id,
                    subject_name=subject_name,
                    teacher_id=teacher_id,
                    day=day,
                )
            )
        else:
            sheet.entries.clear()
            sheet.teacher_id = teacher_id
            # Flush deletes before re-inserting under the (sheet, student) constraint
            await self.db.flush()

        sheet.entries.extend(
            AttendanceEntry(student_id=e.student_id, status=e.status, marked_at=now)
            for e in entries
        )
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise AttendanceConflictError(
                "Attendance was marked concurrently for this day",
                details={"batch_id": batch_id, "subject_name": subject_name},
            ) from e

        logger.info(
            "Attendance marked: batch=%s, subject=%s, date=%s, students=%d",
            batch_id,
            subject_name,
            day.isoformat(),
            len(entries),
        )
        return await self.sheets.get_for_day(batch_id, subject_name, day)

    async def student_stats(
        self,
        student_id: str,
        batch_id: str,
        subject_name: str,
    ) -> AttendanceStats:
        """Attendance counts and percentage for one student in one subject."""
        counts = await self.sheets.status_counts(student_id, batch_id, subject_name)
        present = counts.get(AttendanceStatus.PRESENT, 0)
        absent = counts.get(AttendanceStatus.ABSENT, 0)
        held = present + absent
        return AttendanceStats(
            student_id=student_id,
            batch_id=batch_id,
            subject_name=subject_name,
            present=present,
            absent=absent,
            no_class=counts.get(AttendanceStatus.NO_CLASS, 0),
            total=held,
            percentage=round(present / held * 100, 2) if held else 0.0,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance persistence."""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import AttendanceEntry, AttendanceSheet
from src.infrastructure.database.repositories.base import BaseRepository
from src.models.common import AttendanceStatus


class AttendanceRepository(BaseRepository[AttendanceSheet]):
    """Persistence for attendance sheets and entries."""

    model = AttendanceSheet

    async def get_for_day(
        self,
        batch_id: str,
        subject_name: str,
        day: date,
    ) -> AttendanceSheet | None:
        result = await self.session.execute(
            select(AttendanceSheet)
            .where(
                AttendanceSheet.batch_id == batch_id,
                AttendanceSheet.subject_name == subject_name,
                AttendanceSheet.day == day,
            )
            .options(selectinload(AttendanceSheet.entries))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def status_counts(
        self,
        student_id: str,
        batch_id: str,
        subject_name: str,
    ) -> dict[AttendanceStatus, int]:
        """Count a student's entries per status for one batch subject."""
        result = await self.session.execute(
            select(AttendanceEntry.status, func.count(AttendanceEntry.id))
            .join(AttendanceSheet, AttendanceSheet.id == AttendanceEntry.sheet_id)
            .where(
                AttendanceEntry.student_id == student_id,
                AttendanceSheet.batch_id == batch_id,
                AttendanceSheet.subject_name == subject_name,
            )
            .group_by(AttendanceEntry.status)
        )
        return {AttendanceStatus(status): count for status, count in result.all()}

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment persistence, including the conditional payment transition."""

from datetime import datetime

from sqlalchemy import case, select, update
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import Enrollment, ProgressEntry
from src.infrastructure.database.repositories.base import BaseRepository
from src.models.common import EnrollmentPaymentStatus, EnrollmentStatus


class EnrollmentRepository(BaseRepository[Enrollment]):
    """Persistence for enrollments and their progress entries."""

    model = Enrollment

    async def get(self, entity_id: str) -> Enrollment | None:
        result = await self.session.execute(
            select(Enrollment)
            .where(Enrollment.id == entity_id)
            .options(selectinload(Enrollment.progress))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for(self, student_id: str, course_id: str) -> Enrollment | None:
        """Load the single enrollment of a student in a course."""
        result = await self.session.execute(
            select(Enrollment)
            .where(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
            .options(selectinload(Enrollment.progress))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_student(
        self,
        student_id: str,
        statuses: list[EnrollmentStatus] | None = None,
    ) -> list[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.student_id == student_id)
        if statuses:
            stmt = stmt.where(Enrollment.enrollment_status.in_(statuses))
        result = await self.session.execute(
            stmt.options(selectinload(Enrollment.progress))
            .order_by(Enrollment.enrolled_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def mark_paid(
        self,
        enrollment_id: str,
        payment_id: str,
        signature: str,
        paid_at: datetime,
        expires_at: datetime | None,
    ) -> bool:
        """Move a pending enrollment to enrolled.

        The UPDATE only matches a row still pending, so of two concurrent
        completions exactly one wins.

        Returns:
            True if this call performed the transition.
        """
        result = await self.session.execute(
            update(Enrollment)
            .where(
                Enrollment.id == enrollment_id,
                Enrollment.enrollment_status == EnrollmentStatus.PENDING,
                Enrollment.payment_status == EnrollmentPaymentStatus.PENDING,
            )
            .values(
                enrollment_status=EnrollmentStatus.ENROLLED,
                payment_status=EnrollmentPaymentStatus.COMPLETED,
                gateway_payment_id=payment_id,
                gateway_signature=signature,
                paid_at=paid_at,
                expires_at=expires_at,
                enrolled_at=paid_at,
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1

    async def mark_cancelled(self, enrollment_id: str) -> bool:
        """Cancel a pending enrollment. Returns False if it was not pending."""
        result = await self.session.execute(
            update(Enrollment)
            .where(
                Enrollment.id == enrollment_id,
                Enrollment.enrollment_status == EnrollmentStatus.PENDING,
            )
            .values(enrollment_status=EnrollmentStatus.CANCELLED, is_active=False)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1

    async def raise_watch_time(
        self,
        enrollment_id: str,
        video_id: str,
        watch_time: int,
        completed_at: datetime,
    ) -> bool:
        """Set watch time to max(stored, watch_time) for an existing entry.

        Returns:
            True if a progress entry exists for the video.
        """
        result = await self.session.execute(
            update(ProgressEntry)
            .where(
                ProgressEntry.enrollment_id == enrollment_id,
                ProgressEntry.video_id == video_id,
            )
            .values(
                watch_time=case(
                    (ProgressEntry.watch_time < watch_time, watch_time),
                    else_=ProgressEntry.watch_time,
                ),
                completed_at=completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    async def touch(self, enrollment_id: str, accessed_at: datetime) -> None:
        await self.session.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id)
            .values(last_accessed_at=accessed_at)
            .execution_options(synchronize_session=False)
        )

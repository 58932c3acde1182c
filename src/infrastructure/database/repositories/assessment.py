# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment persistence."""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import Assessment, AssessmentStudent
from src.infrastructure.database.repositories.base import BaseRepository


class AssessmentRepository(BaseRepository[Assessment]):
    """Persistence for assessments and their student slots."""

    model = Assessment

    async def get(self, entity_id: str) -> Assessment | None:
        result = await self.session.execute(
            select(Assessment)
            .where(Assessment.id == entity_id)
            .options(selectinload(Assessment.students))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_slot(self, assessment_id: str, student_id: str) -> AssessmentStudent | None:
        result = await self.session.execute(
            select(AssessmentStudent).where(
                AssessmentStudent.assessment_id == assessment_id,
                AssessmentStudent.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_batch(self, batch_id: str, active_only: bool = True) -> list[Assessment]:
        stmt = select(Assessment).where(Assessment.batch_id == batch_id)
        if active_only:
            stmt = stmt.where(Assessment.is_active.is_(True))
        result = await self.session.execute(
            stmt.options(selectinload(Assessment.students)).order_by(Assessment.created_at.desc())
        )
        return list(result.scalars().all())

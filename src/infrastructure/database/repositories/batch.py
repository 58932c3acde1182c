# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch, subject and student assignment persistence."""

from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import (
    AssignedSubject,
    Batch,
    BatchSubject,
    StudentAssignment,
)
from src.infrastructure.database.repositories.base import BaseRepository
from src.models.common import BatchCategory


def _with_members(stmt):
    return stmt.options(
        selectinload(Batch.subjects),
        selectinload(Batch.student_assignments).selectinload(StudentAssignment.subjects),
    ).execution_options(populate_existing=True)


class BatchRepository(BaseRepository[Batch]):
    """Persistence for batches and everything they own."""

    model = Batch

    async def get(self, entity_id: str) -> Batch | None:
        """Load a batch with its subjects and assignments."""
        stmt = _with_members(select(Batch).where(Batch.id == entity_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Batch | None:
        result = await self.session.execute(select(Batch).where(Batch.name == name))
        return result.scalar_one_or_none()

    async def list_all(
        self,
        category: BatchCategory | None = None,
        active_only: bool = True,
    ) -> list[Batch]:
        stmt = select(Batch)
        if category is not None:
            stmt = stmt.where(Batch.category == category)
        if active_only:
            stmt = stmt.where(Batch.is_active.is_(True))
        result = await self.session.execute(_with_members(stmt.order_by(Batch.name)))
        return list(result.scalars().all())

    async def list_taught_by(self, teacher_id: str) -> list[Batch]:
        """Active batches with at least one subject taught by the teacher."""
        taught = select(BatchSubject.batch_id).where(BatchSubject.teacher_id == teacher_id)
        stmt = select(Batch).where(Batch.id.in_(taught), Batch.is_active.is_(True))
        result = await self.session.execute(_with_members(stmt.order_by(Batch.name)))
        return list(result.scalars().all())

    async def get_subject(self, batch_id: str, subject_id: str) -> BatchSubject | None:
        result = await self.session.execute(
            select(BatchSubject).where(
                BatchSubject.id == subject_id,
                BatchSubject.batch_id == batch_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_subject_by_name(
        self,
        batch_id: str,
        name: str,
        active_only: bool = False,
    ) -> BatchSubject | None:
        stmt = select(BatchSubject).where(
            BatchSubject.batch_id == batch_id,
            BatchSubject.name == name,
        )
        if active_only:
            stmt = stmt.join(Batch, Batch.id == BatchSubject.batch_id).where(
                Batch.is_active.is_(True)
            )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def assigned_student_ids(self, batch_id: str) -> set[str]:
        result = await self.session.execute(
            select(StudentAssignment.student_id).where(StudentAssignment.batch_id == batch_id)
        )
        return set(result.scalars().all())

    async def delete_assignments(self, batch_id: str, student_ids: Iterable[str]) -> int:
        """Delete assignments of the given students. Returns rows removed."""
        ids = list(set(student_ids))
        if not ids:
            return 0
        assignment_ids = select(StudentAssignment.id).where(
            StudentAssignment.batch_id == batch_id,
            StudentAssignment.student_id.in_(ids),
        )
        await self.session.execute(
            delete(AssignedSubject)
            .where(AssignedSubject.assignment_id.in_(assignment_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(StudentAssignment)
            .where(
                StudentAssignment.batch_id == batch_id,
                StudentAssignment.student_id.in_(ids),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def refresh_subject_snapshots(
        self,
        batch_id: str,
        subject_name: str,
        teacher_id: str | None,
    ) -> int:
        """Rewrite the teacher on every assignment snapshot of a subject."""
        assignment_ids = select(StudentAssignment.id).where(StudentAssignment.batch_id == batch_id)
        result = await self.session.execute(
            update(AssignedSubject)
            .where(
                AssignedSubject.assignment_id.in_(assignment_ids),
                AssignedSubject.subject_name == subject_name,
            )
            .values(teacher_id=teacher_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def detach_subject_snapshots(self, subject_ids: Iterable[str]) -> int:
        """Drop the subject link from snapshots of removed subjects."""
        ids = list(subject_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            update(AssignedSubject)
            .where(AssignedSubject.subject_id.in_(ids))
            .values(subject_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def assignments_with_subject(
        self,
        batch_id: str,
        subject_name: str,
    ) -> list[StudentAssignment]:
        """Assignments whose snapshot includes the subject.

        A deactivated batch has none.
        """
        stmt = (
            select(StudentAssignment)
            .join(AssignedSubject, AssignedSubject.assignment_id == StudentAssignment.id)
            .join(Batch, Batch.id == StudentAssignment.batch_id)
            .where(
                StudentAssignment.batch_id == batch_id,
                AssignedSubject.subject_name == subject_name,
                Batch.is_active.is_(True),
            )
            .options(selectinload(StudentAssignment.subjects))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def get_assignment(self, batch_id: str, student_id: str) -> StudentAssignment | None:
        result = await self.session.execute(
            select(StudentAssignment)
            .where(
                StudentAssignment.batch_id == batch_id,
                StudentAssignment.student_id == student_id,
            )
            .options(selectinload(StudentAssignment.subjects))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

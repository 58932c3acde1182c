# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared repository plumbing.

Repositories wrap the caller's AsyncSession; they never commit on their
own. The owning service decides the transaction boundary.
"""

from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Primary-key access and unit-of-work helpers for one model.

    Attributes:
        session: Async session shared with the owning service.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, entity_id: str) -> ModelT | None:
        """Load an entity by primary key."""
        return await self.session.get(self.model, entity_id)

    def add(self, entity: ModelT) -> ModelT:
        """Stage a new entity in the session."""
        self.session.add(entity)
        return entity

    async def flush(self) -> None:
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def refresh(self, entity: ModelT) -> ModelT:
        """Reload an entity's column state from the database."""
        await self.session.refresh(entity)
        return entity

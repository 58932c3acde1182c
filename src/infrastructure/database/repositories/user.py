# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User lookups."""

from collections.abc import Iterable

from sqlalchemy import select

from src.infrastructure.database.models import User
from src.infrastructure.database.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Read access to the local user mirror."""

    model = User

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Load users by id, keyed by id. Unknown ids are absent."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

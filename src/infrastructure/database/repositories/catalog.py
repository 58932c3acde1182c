# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog lookups and the content purchasers read model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, select

from src.infrastructure.database.models import ContentFile, ContentItem, ContentPurchaser, Course
from src.infrastructure.database.repositories.base import BaseRepository


class CourseRepository(BaseRepository[Course]):
    """Read access to the course catalogs."""

    model = Course


class ContentRepository(BaseRepository[ContentItem]):
    """Read access to notes and materials and their files."""

    model = ContentItem

    async def get_file(self, file_id: str) -> ContentFile | None:
        return await self.session.get(ContentFile, file_id)


class PurchaserRepository(BaseRepository[ContentPurchaser]):
    """Maintains the eventually consistent list of content purchasers."""

    model = ContentPurchaser

    async def get_for(self, content_id: str, student_id: str) -> ContentPurchaser | None:
        result = await self.session.execute(
            select(ContentPurchaser).where(
                ContentPurchaser.content_id == content_id,
                ContentPurchaser.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        content_id: str,
        student_id: str,
        payment_id: str | None,
        amount: Decimal,
        purchased_at: datetime,
    ) -> ContentPurchaser:
        """Insert or refresh the purchaser row for a student."""
        row = await self.get_for(content_id, student_id)
        if row is None:
            row = self.add(
                ContentPurchaser(
                    content_id=content_id,
                    student_id=student_id,
                    payment_id=payment_id,
                    amount=amount,
                    purchased_at=purchased_at,
                )
            )
        else:
            row.payment_id = payment_id
            row.amount = amount
            row.purchased_at = purchased_at
        return row

    async def list_for_content(self, content_id: str) -> list[ContentPurchaser]:
        result = await self.session.execute(
            select(ContentPurchaser)
            .where(ContentPurchaser.content_id == content_id)
            .order_by(ContentPurchaser.purchased_at)
        )
        return list(result.scalars().all())

    async def clear_content(self, content_id: str) -> int:
        """Delete every purchaser row of a content item."""
        result = await self.session.execute(
            delete(ContentPurchaser).where(ContentPurchaser.content_id == content_id)
        )
        return result.rowcount or 0

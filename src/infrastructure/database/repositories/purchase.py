# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Purchase ledger persistence."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update

from src.infrastructure.database.models import DownloadRecord, Purchase
from src.infrastructure.database.repositories.base import BaseRepository
from src.models.common import PurchasePaymentStatus, PurchaseStatus


class PurchaseRepository(BaseRepository[Purchase]):
    """Persistence for purchases and their download history."""

    model = Purchase

    async def get_for(self, student_id: str, content_id: str) -> Purchase | None:
        """Load the single purchase record of a student for a content item."""
        result = await self.session.execute(
            select(Purchase)
            .where(Purchase.student_id == student_id, Purchase.content_id == content_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_student(
        self,
        student_id: str,
        status: PurchaseStatus | None = None,
    ) -> list[Purchase]:
        stmt = select(Purchase).where(Purchase.student_id == student_id)
        if status is not None:
            stmt = stmt.where(Purchase.purchase_status == status)
        result = await self.session.execute(stmt.order_by(Purchase.purchased_at.desc()))
        return list(result.scalars().all())

    async def list_completed_for_content(self, content_id: str) -> list[Purchase]:
        result = await self.session.execute(
            select(Purchase)
            .where(
                Purchase.content_id == content_id,
                Purchase.purchase_status == PurchaseStatus.COMPLETED,
                Purchase.is_active.is_(True),
            )
            .order_by(Purchase.purchased_at)
        )
        return list(result.scalars().all())

    async def mark_paid(
        self,
        purchase_id: str,
        payment_id: str,
        signature: str,
        paid_at: datetime,
        expires_at: datetime | None,
        payment_method: str | None = None,
    ) -> bool:
        """Move a pending purchase to completed.

        Returns:
            True if this call performed the transition.
        """
        result = await self.session.execute(
            update(Purchase)
            .where(
                Purchase.id == purchase_id,
                Purchase.purchase_status == PurchaseStatus.PENDING,
                Purchase.payment_status == PurchasePaymentStatus.PENDING,
            )
            .values(
                purchase_status=PurchaseStatus.COMPLETED,
                payment_status=PurchasePaymentStatus.COMPLETED,
                gateway_payment_id=payment_id,
                gateway_signature=signature,
                payment_method=payment_method,
                paid_at=paid_at,
                granted_at=paid_at,
                expires_at=expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1

    async def mark_cancelled(self, purchase_id: str) -> bool:
        """Cancel a pending purchase. Returns False if it was not pending."""
        result = await self.session.execute(
            update(Purchase)
            .where(
                Purchase.id == purchase_id,
                Purchase.purchase_status == PurchaseStatus.PENDING,
            )
            .values(purchase_status=PurchaseStatus.CANCELLED, is_active=False)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1

    async def increment_access(self, purchase_id: str, accessed_at: datetime) -> None:
        """Bump access_count in SQL so concurrent opens are all counted."""
        await self.session.execute(
            update(Purchase)
            .where(Purchase.id == purchase_id)
            .values(
                access_count=Purchase.access_count + 1,
                last_accessed_at=accessed_at,
            )
            .execution_options(synchronize_session=False)
        )

    def add_download(self, record: DownloadRecord) -> DownloadRecord:
        self.session.add(record)
        return record

    async def downloads(self, purchase_id: str) -> list[DownloadRecord]:
        result = await self.session.execute(
            select(DownloadRecord)
            .where(DownloadRecord.purchase_id == purchase_id)
            .order_by(DownloadRecord.downloaded_at)
        )
        return list(result.scalars().all())

    async def aggregate(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        top_limit: int = 10,
    ) -> dict[str, Any]:
        """Count active purchases by status and sum completed revenue in a window."""
        filters = [Purchase.is_active.is_(True)]
        if start is not None:
            filters.append(Purchase.purchased_at >= start)
        if end is not None:
            filters.append(Purchase.purchased_at <= end)

        counts = await self.session.execute(
            select(Purchase.purchase_status, func.count(Purchase.id))
            .where(*filters)
            .group_by(Purchase.purchase_status)
        )
        by_status = {PurchaseStatus(status): count for status, count in counts.all()}

        revenue = await self.session.execute(
            select(func.coalesce(func.sum(Purchase.amount), 0)).where(
                *filters,
                Purchase.purchase_status == PurchaseStatus.COMPLETED,
            )
        )
        top = await self.session.execute(
            select(
                Purchase.content_id,
                func.count(Purchase.id).label("purchases"),
                func.coalesce(func.sum(Purchase.amount), 0).label("revenue"),
            )
            .where(*filters, Purchase.purchase_status == PurchaseStatus.COMPLETED)
            .group_by(Purchase.content_id)
            .order_by(func.count(Purchase.id).desc())
            .limit(top_limit)
        )
        return {
            "by_status": by_status,
            "revenue": Decimal(str(revenue.scalar_one())),
            "top_content": [
                (content_id, count, Decimal(str(amount))) for content_id, count, amount in top.all()
            ],
        }

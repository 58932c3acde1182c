# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Purchase ledger for notes and materials.

This module provides the PurchaseLedger class for:
- Starting a purchase (free content completes immediately)
- Completing a paid purchase after payment verification
- Cancelling a pending purchase
- Answering whether a student holds a valid purchase
- Auditing file access and reporting ledger statistics

The ledger is authoritative. The content purchasers list is a read model
written on completion and rebuilt by resync_purchasers().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import Settings
from src.domains.errors import (
    ConflictError,
    NotFoundError,
    PaymentVerificationError,
    ValidationError,
)
from src.domains.purchase import rules
from src.infrastructure.database.models import ContentItem, DownloadRecord, Purchase
from src.infrastructure.database.repositories import (
    ContentRepository,
    PurchaseRepository,
    PurchaserRepository,
    UserRepository,
)
from src.infrastructure.payments.gateway import GatewayOrder, PaymentAssertion, PaymentGateway
from src.models.common import DenyReason, PurchasePaymentStatus, PurchaseStatus, UserRole
from src.models.purchase import PurchaseStatistics, Requester, TopContent
from src.utils.datetime import days_from_now, utc_now

logger = logging.getLogger(__name__)


class ContentNotFoundError(NotFoundError):
    """Raised when content is missing or inactive."""


class PurchaseNotFoundError(NotFoundError):
    """Raised when a purchase is not found."""


class AlreadyPurchasedError(ConflictError):
    """Raised when a pending or valid purchase already exists.

    Attributes:
        purchase_id: The existing purchase.
    """

    def __init__(self, message: str, purchase_id: str) -> None:
        super().__init__(message, details={"purchase_id": purchase_id})
        self.purchase_id = purchase_id


class InvalidPurchaseStateError(ConflictError):
    """Raised when a transition is not allowed from the current state."""


@dataclass
class PurchaseCheckout:
    """Result of initiate_purchase().

    Attributes:
        purchase: The stored purchase.
        order: Gateway order to complete checkout with; None for free content.
    """

    purchase: Purchase
    order: GatewayOrder | None = None

    @property
    def requires_payment(self) -> bool:
        return self.order is not None


class PurchaseLedger:
    """Service for notes and materials purchases.

    Attributes:
        db: Async database session.
        gateway: Payment gateway for paid content.
        settings: Application settings (access window, currency).
    """

    def __init__(self, db: AsyncSession, gateway: PaymentGateway, settings: Settings) -> None:
        self.db = db
        self.gateway = gateway
        self.settings = settings
        self.purchases = PurchaseRepository(db)
        self.contents = ContentRepository(db)
        self.purchasers = PurchaserRepository(db)
        self.users = UserRepository(db)

    async def initiate_purchase(
        self,
        student_id: str,
        content_id: str,
        timeout: float | None = None,
    ) -> PurchaseCheckout:
        """Start a purchase.

        A cancelled, failed or expired record for the same content is
        reused so the pair keeps a single ledger row.

        Raises:
            ContentNotFoundError: If the content is unknown or inactive.
            NotFoundError: If the student is unknown or inactive.
            AlreadyPurchasedError: If a pending or valid purchase exists.
            GatewayTimeoutError: If the gateway timed out.
            GatewayError: If the gateway rejected the order.
        """
        content = await self._get_content(content_id)
        await self._require_student(student_id)

        existing = await self.purchases.get_for(student_id, content_id)
        if existing is not None and rules.blocks_new_purchase(existing):
            raise AlreadyPurchasedError(
                "Content already purchased or awaiting payment",
                purchase_id=existing.id,
            )

        order: GatewayOrder | None = None
        if not content.is_free:
            order = await self.gateway.create_order(
                amount=content.price,
                currency=self.settings.payment.currency,
                receipt=f"pur_{uuid4().hex[:24]}",
                notes={"student_id": student_id, "content_id": content_id},
                timeout=timeout,
            )

        purchase = existing or Purchase(student_id=student_id, content_id=content_id)
        now = utc_now()
        self._reset(purchase, content, order, now)
        if existing is None:
            self.purchases.add(purchase)
        if order is None:
            await self.purchasers.upsert(content_id, student_id, None, Decimal("0"), now)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raced = await self.purchases.get_for(student_id, content_id)
            raise AlreadyPurchasedError(
                "Content already purchased or awaiting payment",
                purchase_id=raced.id if raced else "",
            ) from e

        logger.info(
            "Purchase started: id=%s, student=%s, content=%s, status=%s",
            purchase.id,
            student_id,
            content_id,
            purchase.purchase_status.value,
        )
        return PurchaseCheckout(purchase=await self.get_purchase(purchase.id), order=order)

    async def complete_payment(
        self,
        purchase_id: str,
        assertion: PaymentAssertion,
        payment_method: str | None = "razorpay",
    ) -> Purchase:
        """Complete a paid purchase.

        Idempotent like EnrollmentService.complete_payment: a completed
        purchase is returned unchanged and concurrent calls complete it once.

        Raises:
            PurchaseNotFoundError: If the purchase does not exist.
            InvalidPurchaseStateError: If the purchase is not awaiting payment.
            PaymentVerificationError: If the order id or signature does not match.
        """
        purchase = await self.get_purchase(purchase_id)

        if purchase.payment_status == PurchasePaymentStatus.COMPLETED:
            logger.debug("Payment already completed: purchase=%s", purchase_id)
            return purchase
        if (
            purchase.purchase_status != PurchaseStatus.PENDING
            or purchase.payment_status != PurchasePaymentStatus.PENDING
        ):
            raise InvalidPurchaseStateError(
                "Purchase is not awaiting payment",
                details={"purchase_id": purchase_id, "status": purchase.purchase_status.value},
            )

        if assertion.order_id != purchase.gateway_order_id:
            logger.warning(
                "Order mismatch: purchase=%s, expected=%s, got=%s",
                purchase_id,
                purchase.gateway_order_id,
                assertion.order_id,
            )
            raise PaymentVerificationError(
                "Order id does not match the purchase",
                details={"purchase_id": purchase_id},
            )
        if not self.gateway.verify_payment(assertion):
            logger.warning("Invalid payment signature: purchase=%s", purchase_id)
            raise PaymentVerificationError(
                "Payment signature verification failed",
                details={"purchase_id": purchase_id},
            )

        paid_at = utc_now()
        won = await self.purchases.mark_paid(
            purchase_id,
            payment_id=assertion.payment_id,
            signature=assertion.signature,
            paid_at=paid_at,
            expires_at=self._expiry(paid_at),
            payment_method=payment_method,
        )
        if won:
            await self.purchasers.upsert(
                purchase.content_id,
                purchase.student_id,
                assertion.payment_id,
                purchase.amount,
                paid_at,
            )
        await self.db.commit()

        if won:
            logger.info(
                "Payment completed: purchase=%s, payment=%s",
                purchase_id,
                assertion.payment_id,
            )
        return await self.get_purchase(purchase_id)

    async def cancel(self, purchase_id: str) -> Purchase:
        """Cancel a pending purchase.

        Raises:
            PurchaseNotFoundError: If the purchase does not exist.
            InvalidPurchaseStateError: If the purchase is not pending.
        """
        purchase = await self.get_purchase(purchase_id)
        if purchase.purchase_status == PurchaseStatus.CANCELLED:
            return purchase
        if not await self.purchases.mark_cancelled(purchase_id):
            raise InvalidPurchaseStateError(
                "Only pending purchases can be cancelled",
                details={"purchase_id": purchase_id, "status": purchase.purchase_status.value},
            )
        await self.db.commit()
        logger.info("Purchase cancelled: id=%s", purchase_id)
        return await self.get_purchase(purchase_id)

    async def has_valid_purchase(self, student_id: str, content_id: str) -> bool:
        """Whether the student currently holds access to the content."""
        purchase = await self.purchases.get_for(student_id, content_id)
        return rules.is_valid_purchase(purchase)

    async def access_check(
        self,
        student_id: str,
        content_id: str,
    ) -> tuple[Purchase | None, DenyReason | None]:
        """Return the student's purchase and the deny reason, if any."""
        purchase = await self.purchases.get_for(student_id, content_id)
        return purchase, rules.deny_reason(purchase)

    async def record_access(
        self,
        purchase_id: str,
        pdf_id: str,
        requester: Requester | None = None,
    ) -> DownloadRecord:
        """Append a download record and bump the access counter.

        Raises:
            PurchaseNotFoundError: If the purchase does not exist.
        """
        await self.get_purchase(purchase_id)
        requester = requester or Requester()
        now = utc_now()
        record = self.purchases.add_download(
            DownloadRecord(
                purchase_id=purchase_id,
                pdf_id=pdf_id,
                downloaded_at=now,
                ip_address=requester.ip_address,
                user_agent=requester.user_agent,
            )
        )
        await self.purchases.increment_access(purchase_id, now)
        await self.db.commit()
        logger.info("Access recorded: purchase=%s, pdf=%s", purchase_id, pdf_id)
        return record

    async def download_history(self, purchase_id: str) -> list[DownloadRecord]:
        await self.get_purchase(purchase_id)
        return await self.purchases.downloads(purchase_id)

    async def get_purchase(self, purchase_id: str) -> Purchase:
        purchase = await self.purchases.get(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(
                f"Purchase not found: {purchase_id}", details={"purchase_id": purchase_id}
            )
        await self.purchases.refresh(purchase)
        return purchase

    async def list_student_purchases(
        self,
        student_id: str,
        status: PurchaseStatus | None = None,
        valid_only: bool = False,
    ) -> list[Purchase]:
        purchases = await self.purchases.list_for_student(student_id, status)
        if valid_only:
            now = utc_now()
            purchases = [p for p in purchases if rules.is_valid_purchase(p, now)]
        return purchases

    async def statistics(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> PurchaseStatistics:
        """Ledger totals for purchases made between start and end.

        Raises:
            ValidationError: If start is after end.
        """
        if start is not None and end is not None and start > end:
            raise ValidationError("Start must not be after end", field="start")

        totals = await self.purchases.aggregate(start, end)
        by_status = totals["by_status"]
        total = sum(by_status.values())
        completed = by_status.get(PurchaseStatus.COMPLETED, 0)
        return PurchaseStatistics(
            total_purchases=total,
            completed_purchases=completed,
            pending_purchases=by_status.get(PurchaseStatus.PENDING, 0),
            failed_purchases=by_status.get(PurchaseStatus.FAILED, 0),
            total_revenue=totals["revenue"],
            conversion_rate=round(completed / total * 100, 2) if total else 0.0,
            top_content=[
                TopContent(content_id=content_id, purchases=count, revenue=revenue)
                for content_id, count, revenue in totals["top_content"]
            ],
            start=start,
            end=end,
        )

    async def resync_purchasers(self, content_id: str) -> int:
        """Rebuild the purchasers read model of one content item from the ledger.

        Returns:
            Number of purchaser rows written.
        """
        await self._get_content(content_id, active_only=False)
        await self.purchasers.clear_content(content_id)
        completed = await self.purchases.list_completed_for_content(content_id)
        for purchase in completed:
            await self.purchasers.upsert(
                content_id,
                purchase.student_id,
                purchase.gateway_payment_id,
                purchase.amount,
                purchase.paid_at or purchase.purchased_at,
            )
        await self.db.commit()
        logger.info("Purchasers resynced: content=%s, rows=%d", content_id, len(completed))
        return len(completed)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _expiry(self, granted_at: datetime) -> datetime | None:
        days = self.settings.entitlement.notes_access_days
        return days_from_now(days, granted_at) if days else None

    def _reset(
        self,
        purchase: Purchase,
        content: ContentItem,
        order: GatewayOrder | None,
        now: datetime,
    ) -> None:
        purchase.is_active = True
        purchase.purchased_at = now
        purchase.gateway_payment_id = None
        purchase.gateway_signature = None
        purchase.payment_method = None
        purchase.access_count = purchase.access_count or 0
        if order is None:
            purchase.purchase_status = PurchaseStatus.COMPLETED
            purchase.payment_status = PurchasePaymentStatus.COMPLETED
            purchase.amount = Decimal("0")
            purchase.gateway_order_id = None
            purchase.paid_at = now
            purchase.granted_at = now
            purchase.expires_at = self._expiry(now)
        else:
            purchase.purchase_status = PurchaseStatus.PENDING
            purchase.payment_status = PurchasePaymentStatus.PENDING
            purchase.amount = content.price
            purchase.currency = order.currency
            purchase.gateway_order_id = order.order_id
            purchase.paid_at = None
            purchase.granted_at = None
            purchase.expires_at = None

    async def _get_content(self, content_id: str, active_only: bool = True) -> ContentItem:
        content = await self.contents.get(content_id)
        if content is None or (active_only and not content.is_active):
            raise ContentNotFoundError(
                f"Content not found: {content_id}", details={"content_id": content_id}
            )
        return content

    async def _require_student(self, student_id: str) -> None:
        student = await self.users.get(student_id)
        if student is None or not student.is_active:
            raise NotFoundError(
                f"Student not found: {student_id}", details={"student_id": student_id}
            )
        if student.role != UserRole.USER:
            raise ValidationError("Only students can purchase content", field="student_id")

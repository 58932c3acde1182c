# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notes and materials purchase ledger models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    IdMixin,
    TimestampMixin,
    UTCDateTime,
    enum_column,
)
from src.models.common import PurchasePaymentStatus, PurchaseStatus
from src.utils.datetime import utc_now


class Purchase(IdMixin, TimestampMixin, Base):
    """Authoritative purchase record for one (student, content) pair."""

    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint("student_id", "content_id", name="uq_purchases_student_content"),
        Index("ix_purchases_student_status", "student_id", "purchase_status"),
        Index("ix_purchases_content_status", "content_id", "purchase_status"),
        Index("ix_purchases_purchased_at", "purchased_at"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    content_id: Mapped[str] = mapped_column(ForeignKey("content_items.id"), nullable=False)
    purchase_status: Mapped[PurchaseStatus] = mapped_column(
        enum_column(PurchaseStatus, "purchase_status"),
        nullable=False,
        default=PurchaseStatus.PENDING,
    )
    payment_status: Mapped[PurchasePaymentStatus] = mapped_column(
        enum_column(PurchasePaymentStatus, "purchase_payment_status"),
        nullable=False,
        default=PurchasePaymentStatus.PENDING,
    )

    # Payment details
    gateway_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gateway_signature: Mapped[str | None] = mapped_column(String(256), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Access details
    granted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_accessed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    purchased_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    downloads: Mapped[list["DownloadRecord"]] = relationship(
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="DownloadRecord.downloaded_at",
    )


class DownloadRecord(IdMixin, Base):
    """Append-only audit of one file access under a purchase."""

    __tablename__ = "purchase_downloads"

    purchase_id: Mapped[str] = mapped_column(
        ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pdf_id: Mapped[str] = mapped_column(String(36), nullable=False)
    downloaded_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    purchase: Mapped[Purchase] = relationship(back_populates="downloads")

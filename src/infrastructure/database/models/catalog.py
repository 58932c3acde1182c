# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog models consulted by the entitlement core.

Catalog CRUD lives elsewhere; the core only reads price, activity and
content file metadata, and maintains the purchasers read model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    IdMixin,
    TimestampMixin,
    UTCDateTime,
    enum_column,
)
from src.models.common import ContentType, CourseType
from src.utils.datetime import utc_now


class Course(IdMixin, TimestampMixin, Base):
    """Course from either the unpaid or the paid catalog."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    course_type: Mapped[CourseType] = mapped_column(
        enum_column(CourseType, "course_type"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_videos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_free(self) -> bool:
        return self.course_type == CourseType.UNPAID and self.price == 0


class ContentItem(IdMixin, TimestampMixin, Base):
    """Purchasable notes or materials bundle."""

    __tablename__ = "content_items"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        enum_column(ContentType, "content_type"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    files: Mapped[list["ContentFile"]] = relationship(
        back_populates="content",
        cascade="all, delete-orphan",
    )

    @property
    def is_free(self) -> bool:
        return self.price == 0


class ContentFile(IdMixin, Base):
    """Metadata of a stored PDF; the bytes live in external storage."""

    __tablename__ = "content_files"

    content_id: Mapped[str] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False, default="application/pdf")
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    content: Mapped[ContentItem] = relationship(back_populates="files")


class ContentPurchaser(IdMixin, Base):
    """Read model of who purchased a content item.

    Eventually consistent with the purchase ledger and never consulted
    for access decisions.
    """

    __tablename__ = "content_purchasers"
    __table_args__ = (
        UniqueConstraint("content_id", "student_id", name="uq_content_purchasers"),
    )

    content_id: Mapped[str] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    purchased_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

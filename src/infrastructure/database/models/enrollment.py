# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course enrollment and progress models."""

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
from src.models.common import (
    CourseMode,
    CourseType,
    EnrollmentPaymentStatus,
    EnrollmentStatus,
)
from src.utils.datetime import utc_now


class Enrollment(IdMixin, TimestampMixin, Base):
    """One record per (student, course), ever."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("ix_enrollments_student_status", "student_id", "enrollment_status"),
        Index("ix_enrollments_course_status", "course_id", "enrollment_status"),
        Index("ix_enrollments_payment_status", "payment_status"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), nullable=False)
    course_type: Mapped[CourseType] = mapped_column(
        enum_column(CourseType, "course_type"), nullable=False
    )
    enrollment_status: Mapped[EnrollmentStatus] = mapped_column(
        enum_column(EnrollmentStatus, "enrollment_status"),
        nullable=False,
        default=EnrollmentStatus.PENDING,
    )
    payment_status: Mapped[EnrollmentPaymentStatus] = mapped_column(
        enum_column(EnrollmentPaymentStatus, "enrollment_payment_status"),
        nullable=False,
        default=EnrollmentPaymentStatus.NOT_REQUIRED,
    )

    # Payment details
    gateway_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gateway_signature: Mapped[str | None] = mapped_column(String(256), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    mode: Mapped[CourseMode] = mapped_column(
        enum_column(CourseMode, "course_mode"), nullable=False, default=CourseMode.ONLINE
    )
    schedule: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    enrolled_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_accessed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    progress: Mapped[list["ProgressEntry"]] = relationship(
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="ProgressEntry.completed_at",
    )


class ProgressEntry(IdMixin, Base):
    """Watch progress of one video within an enrollment."""

    __tablename__ = "enrollment_progress"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "video_id", name="uq_enrollment_progress_video"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    video_id: Mapped[str] = mapped_column(String(100), nullable=False)
    watch_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    enrollment: Mapped[Enrollment] = relationship(back_populates="progress")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance sheets per batch, subject and day."""

from datetime import date, datetime

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    IdMixin,
    TimestampMixin,
    UTCDateTime,
    enum_column,
)
from src.models.common import AttendanceStatus
from src.utils.datetime import utc_now


class AttendanceSheet(IdMixin, TimestampMixin, Base):
    """Attendance taken by a subject teacher on one day."""

    __tablename__ = "attendance_sheets"
    __table_args__ = (
        UniqueConstraint("batch_id", "subject_name", "date", name="uq_attendance_sheets_day"),
    )

    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.id"), nullable=False, index=True)
    subject_name: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    day: Mapped[date] = mapped_column("date", Date, nullable=False)

    entries: Mapped[list["AttendanceEntry"]] = relationship(
        back_populates="sheet",
        cascade="all, delete-orphan",
    )


class AttendanceEntry(IdMixin, Base):
    """One student's status on a sheet."""

    __tablename__ = "attendance_entries"
    __table_args__ = (
        UniqueConstraint("sheet_id", "student_id", name="uq_attendance_entries_student"),
    )

    sheet_id: Mapped[str] = mapped_column(
        ForeignKey("attendance_sheets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        enum_column(AttendanceStatus, "attendance_status"), nullable=False
    )
    marked_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    sheet: Mapped[AttendanceSheet] = relationship(back_populates="entries")

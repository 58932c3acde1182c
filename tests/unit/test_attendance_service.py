# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for attendance marking and statistics."""

from datetime import date

import pytest

from src.domains.batch.service import BatchNotFoundError
from src.domains.errors import AccessDeniedError, ValidationError
from src.models.attendance import AttendanceMark
from src.models.common import AttendanceStatus

PRESENT = AttendanceStatus.PRESENT
ABSENT = AttendanceStatus.ABSENT
NO_CLASS = AttendanceStatus.NO_CLASS


def marks(*pairs) -> list[AttendanceMark]:
    return [AttendanceMark(student_id=sid, status=status) for sid, status in pairs]


class TestMarkAttendance:
    """Tests for marking attendance sheets."""

    @pytest.mark.asyncio
    async def test_mark_and_replace(self, services, factory) -> None:
        """Test marking the same day twice replaces the entries."""
        admin = await factory.admin()
        teacher = await factory.teacher()
        s1 = await factory.student()
        s2 = await factory.student()
        batch = await factory.batch(admin.id, subjects={"Physics": teacher.id})
        await factory.assign(batch.id, s1.id, ["11"], ["Physics"])
        await factory.assign(batch.id, s2.id, ["12"], ["Physics"])
        day = date(2026, 3, 2)

        first = await services.attendance.mark_attendance(
            batch.id, "Physics", day, marks((s1.id, PRESENT), (s2.id, ABSENT)), teacher.id
        )
        second = await services.attendance.mark_attendance(
            batch.id, " Physics ", day, marks((s1.id, ABSENT)), teacher.id
        )

        assert second.id == first.id
        assert [(e.student_id, e.status) for e in second.entries] == [(s1.id, ABSENT)]

    @pytest.mark.asyncio
    async def test_only_subject_teacher(self, services, factory) -> None:
        admin = await factory.admin()
        teacher = await factory.teacher()
        other = await factory.teacher()
        student = await factory.student()
        batch = await factory.batch(admin.id, subjects={"Physics": teacher.id})
        await factory.assign(batch.id, student.id, ["11"], ["Physics"])

        with pytest.raises(AccessDeniedError):
            await services.attendance.mark_attendance(
                batch.id, "Physics", date(2026, 3, 2), marks((student.id, PRESENT)), other.id
            )

    @pytest.mark.asyncio
    async def test_rejects_duplicates_and_outsiders(self, services, factory) -> None:
        admin = await factory.admin()
        teacher = await factory.teacher()
        member = await factory.student()
        outsider = await factory.student()
        batch = await factory.batch(admin.id, subjects={"Physics": teacher.id, "Maths": None})
        await factory.assign(batch.id, member.id, ["11"], ["Physics"])
        await factory.assign(batch.id, outsider.id, ["11"], ["Maths"])
        day = date(2026, 3, 2)

        with pytest.raises(ValidationError) as exc_info:
            await services.attendance.mark_attendance(
                batch.id, "Physics", day, marks((member.id, PRESENT), (member.id, ABSENT)),
                teacher.id,
            )
        assert exc_info.value.details["invalid"] == [member.id]

        with pytest.raises(ValidationError) as exc_info:
            await services.attendance.mark_attendance(
                batch.id, "Physics", day, marks((outsider.id, PRESENT)), teacher.id
            )
        assert exc_info.value.details["invalid"] == [outsider.id]

    @pytest.mark.asyncio
    async def test_unknown_batch(self, services, factory) -> None:
        teacher = await factory.teacher()

        with pytest.raises(BatchNotFoundError):
            await services.attendance.mark_attendance(
                "missing", "Physics", date(2026, 3, 2), [], teacher.id
            )


class TestAttendanceStats:
    """Tests for per-student attendance statistics."""

    @pytest.mark.asyncio
    async def test_percentage_excludes_no_class(self, services, factory) -> None:
        admin = await factory.admin()
        teacher = await factory.teacher()
        student = await factory.student()
        batch = await factory.batch(admin.id, subjects={"Physics": teacher.id})
        await factory.assign(batch.id, student.id, ["11"], ["Physics"])
        statuses = [PRESENT, PRESENT, ABSENT, NO_CLASS]
        for day, status in enumerate(statuses, start=1):
            await services.attendance.mark_attendance(
                batch.id, "Physics", date(2026, 3, day), marks((student.id, status)), teacher.id
            )

        stats = await services.attendance.student_stats(student.id, batch.id, "Physics")

        assert stats.present == 2
        assert stats.absent == 1
        assert stats.no_class == 1
        assert stats.total == 3
        assert stats.percentage == 66.67

    @pytest.mark.asyncio
    async def test_no_records(self, services) -> None:
        stats = await services.attendance.student_stats("s1", "b1", "Physics")

        assert stats.total == 0
        assert stats.percentage == 0.0

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, column types, and helper methods.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import inspect, select

from src.infrastructure.database.models import (
    AssignedSubject,
    Base,
    Batch,
    BatchSubject,
    ContentItem,
    Course,
    Enrollment,
    StudentAssignment,
    User,
)
from src.infrastructure.database.models.base import UTCDateTime, new_id
from src.models.common import ContentType, CourseType, EnrollmentStatus, UserRole


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_all_tables_registered(self):
        expected = {
            "users",
            "batches",
            "batch_subjects",
            "batch_student_assignments",
            "batch_assigned_subjects",
            "courses",
            "content_items",
            "content_files",
            "content_purchasers",
            "enrollments",
            "attendance_sheets",
            "attendance_entries",
        }
        assert expected <= set(Base.metadata.tables)

    def test_new_id_is_unique(self):
        assert new_id() != new_id()
        assert len(new_id()) == 36


class TestUTCDateTime:
    """Tests for the UTC datetime column type."""

    def test_naive_result_is_tagged_utc(self):
        column = UTCDateTime()
        naive = datetime(2026, 1, 1, 12, 0)

        value = column.process_result_value(naive, dialect=None)

        assert value.tzinfo == timezone.utc
        assert value.hour == 12

    def test_bind_converts_to_utc(self):
        column = UTCDateTime()
        ist = timezone(timedelta(hours=5, minutes=30))

        value = column.process_bind_param(datetime(2026, 1, 1, 12, 0, tzinfo=ist), dialect=None)

        assert value == datetime(2026, 1, 1, 6, 30, tzinfo=timezone.utc)

    def test_none_passes_through(self):
        column = UTCDateTime()

        assert column.process_bind_param(None, dialect=None) is None
        assert column.process_result_value(None, dialect=None) is None

    @pytest.mark.asyncio
    async def test_round_trip_through_sqlite(self, factory, db_session):
        """Test stored datetimes come back timezone-aware."""
        student = await factory.student()
        course = await factory.course()
        stamp = datetime(2026, 5, 1, 8, 15, tzinfo=timezone.utc)
        db_session.add(
            Enrollment(
                student_id=student.id,
                course_id=course.id,
                course_type=CourseType.UNPAID,
                enrollment_status=EnrollmentStatus.ENROLLED,
                enrolled_at=stamp,
            )
        )
        await db_session.commit()
        db_session.expunge_all()

        result = await db_session.execute(select(Enrollment.enrolled_at))

        assert result.scalar_one() == stamp


class TestUserModel:
    """Test User model."""

    def test_role_properties(self):
        student = User(name="S", email="s@example.com", role=UserRole.USER)
        teacher = User(name="T", email="t@example.com", role=UserRole.TEACHER)

        assert student.is_student and not student.is_teacher
        assert teacher.is_teacher and not teacher.is_student

    def test_role_stored_as_value(self):
        column = inspect(User).columns["role"]

        assert column.type.enums == [r.value for r in UserRole]


class TestCatalogModels:
    """Test Course and ContentItem pricing helpers."""

    @pytest.mark.parametrize(
        "course_type,price,expected",
        [
            (CourseType.UNPAID, Decimal("0"), True),
            (CourseType.UNPAID, Decimal("10.00"), False),
            (CourseType.PAID, Decimal("0"), False),
        ],
    )
    def test_course_is_free(self, course_type, price, expected):
        course = Course(title="C", course_type=course_type, price=price)

        assert course.is_free is expected

    def test_content_is_free(self):
        free = ContentItem(title="N", content_type=ContentType.NOTES, price=Decimal("0"))
        paid = ContentItem(title="N", content_type=ContentType.NOTES, price=Decimal("99.00"))

        assert free.is_free
        assert not paid.is_free


class TestBatchModels:
    """Test batch helpers."""

    def test_subject_named(self):
        batch = Batch(
            name="B",
            subjects=[BatchSubject(name="Physics"), BatchSubject(name="Chemistry")],
        )

        assert batch.subject_named("Physics").name == "Physics"
        assert batch.subject_named("physics") is None

    def test_assignment_covers(self):
        assignment = StudentAssignment(
            student_id="s1",
            assigned_classes=["11"],
            subjects=[AssignedSubject(subject_name="Physics")],
        )

        assert assignment.covers("11", "Physics")
        assert not assignment.covers("12", "Physics")
        assert not assignment.covers("11", "Chemistry")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for batch tests and their statistics."""

from datetime import timedelta

import pytest
import pytest_asyncio

from src.domains.assessment import (
    AssessmentNotFoundError,
    StudentNotAssignedError,
    compute_statistics,
    student_performance,
)
from src.domains.assessment.statistics import percentage, round_half_up
from src.domains.errors import AccessDeniedError, ValidationError
from src.infrastructure.database.models import Assessment, AssessmentStudent
from src.models.assessment import AssessmentCreateRequest
from src.utils.datetime import utc_now


@pytest_asyncio.fixture
async def physics_batch(factory):
    """Batch with a Physics teacher and three students in class 11 or 12."""
    admin = await factory.admin()
    teacher = await factory.teacher()
    batch = await factory.batch(admin.id, subjects={"Physics": teacher.id, "Chemistry": None})
    students = [await factory.student() for _ in range(3)]
    await factory.assign(batch.id, students[0].id, ["11"], ["Physics"])
    await factory.assign(batch.id, students[1].id, ["11"], ["Physics", "Chemistry"])
    await factory.assign(batch.id, students[2].id, ["12"], ["Physics"])
    return batch, teacher, students


def create_request(batch_id: str, **overrides) -> AssessmentCreateRequest:
    data = {
        "batch_id": batch_id,
        "class_name": "11",
        "subject_name": "Physics",
        "title": "Unit Test 1",
        "full_marks": 80,
        "due_date": utc_now() + timedelta(days=3),
    }
    data.update(overrides)
    return AssessmentCreateRequest(**data)


class TestCreateAssessment:
    """Tests for test creation."""

    @pytest.mark.asyncio
    async def test_create(self, services, physics_batch) -> None:
        batch, teacher, _ = physics_batch

        assessment = await services.assessments.create_assessment(
            create_request(batch.id, title="  Optics  "), created_by=teacher.id
        )

        assert assessment.title == "Optics"
        assert assessment.students == []
        listed = await services.assessments.list_batch_assessments(batch.id)
        assert [a.id for a in listed] == [assessment.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"full_marks": 0}, "full_marks"),
            ({"full_marks": 1001}, "full_marks"),
            ({"title": "   "}, "title"),
            ({"class_name": "13"}, "class_name"),
            ({"subject_name": "Biology"}, "subject_name"),
        ],
    )
    async def test_invalid_definition(self, services, physics_batch, overrides, field) -> None:
        batch, teacher, _ = physics_batch

        with pytest.raises(ValidationError) as exc_info:
            await services.assessments.create_assessment(
                create_request(batch.id, **overrides), created_by=teacher.id
            )

        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_due_date_must_be_future(self, services, physics_batch) -> None:
        batch, teacher, _ = physics_batch

        with pytest.raises(ValidationError) as exc_info:
            await services.assessments.create_assessment(
                create_request(batch.id, due_date=utc_now() - timedelta(hours=1)),
                created_by=teacher.id,
            )

        assert exc_info.value.field == "due_date"

    @pytest.mark.asyncio
    async def test_only_subject_teacher(self, services, physics_batch, factory) -> None:
        batch, _, _ = physics_batch
        stranger = await factory.teacher()

        with pytest.raises(AccessDeniedError):
            await services.assessments.create_assessment(
                create_request(batch.id), created_by=stranger.id
            )
        with pytest.raises(AccessDeniedError):
            await services.assessments.create_assessment(
                create_request(batch.id, subject_name="Chemistry"), created_by=stranger.id
            )

    @pytest.mark.asyncio
    async def test_inactive_batch(self, services, physics_batch) -> None:
        batch, teacher, _ = physics_batch
        await services.batches.deactivate_batch(batch.id)

        with pytest.raises(ValidationError):
            await services.assessments.create_assessment(
                create_request(batch.id), created_by=teacher.id
            )


class TestAssignAndGrade:
    """Tests for assignment, submission and marks."""

    @pytest.mark.asyncio
    async def test_assign_is_all_or_nothing(self, services, physics_batch) -> None:
        """Test one ineligible student rejects the whole call."""
        batch, teacher, students = physics_batch
        assessment = await services.assessments.create_assessment(
            create_request(batch.id), created_by=teacher.id
        )

        with pytest.raises(ValidationError) as exc_info:
            await services.assessments.assign_students(
                assessment.id, [students[0].id, students[2].id]
            )

        assert exc_info.value.details["invalid"] == [students[2].id]
        available = await services.assessments.available_students(assessment.id)
        assert available == {students[0].id, students[1].id}

    @pytest.mark.asyncio
    async def test_assign_skips_existing(self, services, physics_batch) -> None:
        batch, teacher, students = physics_batch
        assessment = await services.assessments.create_assessment(
            create_request(batch.id), created_by=teacher.id
        )

        first = await services.assessments.assign_students(assessment.id, [students[0].id])
        second = await services.assessments.assign_students(
            assessment.id, [students[0].id, students[1].id, students[1].id]
        )

        assert first.added == [students[0].id]
        assert second.added == [students[1].id]
        assert second.skipped == [students[0].id]
        assert await services.assessments.available_students(assessment.id) == set()

    @pytest.mark.asyncio
    async def test_submit_and_grade(self, services, physics_batch) -> None:
        batch, teacher, students = physics_batch
        assessment = await services.assessments.create_assessment(
            create_request(batch.id), created_by=teacher.id
        )
        s0, s1 = students[0].id, students[1].id
        await services.assessments.assign_students(assessment.id, [s0, s1])

        first = await services.assessments.submit(assessment.id, s0)
        submitted_at = first.submitted_at
        again = await services.assessments.submit(assessment.id, s0)
        await services.assessments.record_marks(assessment.id, s0, 60)

        assert again.submitted_at == submitted_at
        performance = await services.assessments.student_performance(assessment.id, s0)
        assert performance.status == "evaluated"
        assert performance.percentage == 75.0
        assert not performance.is_late
        pending = await services.assessments.student_performance(assessment.id, s1)
        assert pending.status == "pending"
        assert pending.percentage is None

        stats = await services.assessments.statistics(assessment.id)
        assert stats.total_students == 2
        assert stats.submitted == 1
        assert stats.evaluated == 1
        assert stats.pending_submission == 1
        assert stats.completion_rate == 50.0
        assert stats.average_marks == 60.0
        assert stats.highest_marks == 60

    @pytest.mark.asyncio
    async def test_marks_out_of_range(self, services, physics_batch) -> None:
        batch, teacher, students = physics_batch
        assessment = await services.assessments.create_assessment(
            create_request(batch.id, full_marks=50), created_by=teacher.id
        )
        await services.assessments.assign_students(assessment.id, [students[0].id])

        for marks in (-1, 51):
            with pytest.raises(ValidationError):
                await services.assessments.record_marks(assessment.id, students[0].id, marks)

    @pytest.mark.asyncio
    async def test_unassigned_student_and_unknown_test(self, services, physics_batch) -> None:
        batch, teacher, students = physics_batch
        assessment = await services.assessments.create_assessment(
            create_request(batch.id), created_by=teacher.id
        )

        with pytest.raises(StudentNotAssignedError):
            await services.assessments.submit(assessment.id, students[0].id)
        with pytest.raises(AssessmentNotFoundError):
            await services.assessments.statistics("missing")


class TestStatisticsMath:
    """Tests for the pure statistics helpers."""

    def test_round_half_up(self) -> None:
        assert round_half_up(2.675) == 2.68
        assert round_half_up(0.125) == 0.13
        assert round_half_up(66.5, places=0) == 67.0

    def test_percentage_of_zero(self) -> None:
        assert percentage(3, 0) == 0.0

    def test_empty_assessment(self) -> None:
        assessment = Assessment(id="t1", full_marks=100, students=[])

        stats = compute_statistics(assessment)

        assert stats.total_students == 0
        assert stats.completion_rate == 0.0
        assert stats.average_marks == 0.0
        assert stats.highest_marks is None

    def test_rates_and_pending_evaluation(self) -> None:
        """Test submitted-but-ungraded slots count as pending evaluation."""
        now = utc_now()
        assessment = Assessment(
            id="t1",
            title="Mock",
            class_name="11",
            subject_name="Physics",
            full_marks=30,
            due_date=now,
            students=[
                AssessmentStudent(student_id="a", submitted_at=now, marks_scored=20),
                AssessmentStudent(student_id="b", submitted_at=now, marks_scored=25),
                AssessmentStudent(student_id="c", submitted_at=now),
            ],
        )

        stats = compute_statistics(assessment)

        assert stats.completion_rate == 100.0
        assert stats.evaluation_rate == 67.0
        assert stats.pending_evaluation == 1
        assert stats.average_marks == 22.5
        assert stats.average_percentage == 75.0
        assert stats.lowest_marks == 20

    def test_late_submission(self) -> None:
        due = utc_now()
        assessment = Assessment(
            id="t1",
            title="Mock",
            class_name="11",
            subject_name="Physics",
            full_marks=10,
            due_date=due,
        )
        slot = AssessmentStudent(student_id="a", submitted_at=due + timedelta(minutes=5))

        performance = student_performance(assessment, slot)

        assert performance.is_late
        assert performance.status == "submitted"

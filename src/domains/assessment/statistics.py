# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure statistics over an assessment's student slots.

Rates are whole percentages and averages have two decimals, both rounded
half up.
"""

from decimal import ROUND_HALF_UP, Decimal

from src.infrastructure.database.models import Assessment, AssessmentStudent
from src.models.assessment import AssessmentStatistics, StudentPerformance


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float, places: int = 2) -> float:
    if not whole:
        return 0.0
    return round_half_up(part / whole * 100, places)


def compute_statistics(assessment: Assessment) -> AssessmentStatistics:
    """Recompute statistics from the loaded student slots."""
    slots = assessment.students
    total = len(slots)
    submitted = [s for s in slots if s.submitted_at is not None]
    evaluated = [s for s in slots if s.marks_scored is not None]
    marks = [s.marks_scored for s in evaluated]

    average_marks = 0.0
    average_percentage = 0.0
    if marks:
        average_marks = round_half_up(sum(marks) / len(marks))
        average_percentage = round_half_up(
            sum(m / assessment.full_marks * 100 for m in marks) / len(marks)
        )

    return AssessmentStatistics(
        total_students=total,
        submitted=len(submitted),
        evaluated=len(evaluated),
        pending_submission=total - len(submitted),
        pending_evaluation=sum(1 for s in submitted if s.marks_scored is None),
        completion_rate=percentage(len(submitted), total, places=0),
        evaluation_rate=percentage(len(evaluated), total, places=0),
        average_marks=average_marks,
        average_percentage=average_percentage,
        highest_marks=max(marks) if marks else None,
        lowest_marks=min(marks) if marks else None,
    )


def student_performance(assessment: Assessment, slot: AssessmentStudent) -> StudentPerformance:
    """One student's result, with lateness judged against the due date."""
    if slot.marks_scored is not None:
        status = "evaluated"
    elif slot.submitted_at is not None:
        status = "submitted"
    else:
        status = "pending"

    is_late = bool(
        assessment.due_date is not None
        and slot.submitted_at is not None
        and slot.submitted_at > assessment.due_date
    )
    return StudentPerformance(
        assessment_id=assessment.id,
        student_id=slot.student_id,
        title=assessment.title,
        class_name=assessment.class_name,
        subject_name=assessment.subject_name,
        full_marks=assessment.full_marks,
        marks_scored=slot.marks_scored,
        percentage=(
            percentage(slot.marks_scored, assessment.full_marks)
            if slot.marks_scored is not None
            else None
        ),
        submitted_at=slot.submitted_at,
        evaluated_at=slot.evaluated_at,
        status=status,
        is_late=is_late,
    )

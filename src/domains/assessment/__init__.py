# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment domain package.

This package provides batch tests:
- Test creation by subject teachers
- Eligibility-checked student assignment
- Submissions, marks and statistics
"""

from src.domains.assessment.service import (
    AssessmentAssignmentConflictError,
    AssessmentNotFoundError,
    AssessmentService,
    StudentNotAssignedError,
)
from src.domains.assessment.statistics import compute_statistics, student_performance

__all__ = [
    "AssessmentService",
    "AssessmentAssignmentConflictError",
    "AssessmentNotFoundError",
    "StudentNotAssignedError",
    "compute_statistics",
    "student_performance",
]

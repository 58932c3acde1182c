# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch domain package.

This package provides batch membership management:
- Batch creation, update and soft deletion
- Student assignment with class and subject scope
- Subject teacher assignment
- Eligibility queries
"""

from src.domains.batch.service import (
    AssignmentConflictError,
    BatchAssignmentService,
    BatchNotFoundError,
    DuplicateBatchError,
    SubjectNotFoundError,
)

__all__ = [
    "BatchAssignmentService",
    "BatchNotFoundError",
    "SubjectNotFoundError",
    "DuplicateBatchError",
    "AssignmentConflictError",
]

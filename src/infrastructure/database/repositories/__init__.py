# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repositories, one per aggregate, sharing the caller's session."""

from src.infrastructure.database.repositories.assessment import AssessmentRepository
from src.infrastructure.database.repositories.attendance import AttendanceRepository
from src.infrastructure.database.repositories.base import BaseRepository
from src.infrastructure.database.repositories.batch import BatchRepository
from src.infrastructure.database.repositories.catalog import (
    ContentRepository,
    CourseRepository,
    PurchaserRepository,
)
from src.infrastructure.database.repositories.enrollment import EnrollmentRepository
from src.infrastructure.database.repositories.purchase import PurchaseRepository
from src.infrastructure.database.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "BatchRepository",
    "CourseRepository",
    "ContentRepository",
    "PurchaserRepository",
    "EnrollmentRepository",
    "PurchaseRepository",
    "AssessmentRepository",
    "AttendanceRepository",
]

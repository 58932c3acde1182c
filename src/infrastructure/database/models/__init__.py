# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the entitlement core.

Importing this package registers every table on ``Base.metadata``.
"""

from src.infrastructure.database.models.assessment import Assessment, AssessmentStudent
from src.infrastructure.database.models.attendance import AttendanceEntry, AttendanceSheet
from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin, UTCDateTime
from src.infrastructure.database.models.batch import (
    AssignedSubject,
    Batch,
    BatchSubject,
    StudentAssignment,
)
from src.infrastructure.database.models.catalog import (
    ContentFile,
    ContentItem,
    ContentPurchaser,
    Course,
)
from src.infrastructure.database.models.enrollment import Enrollment, ProgressEntry
from src.infrastructure.database.models.purchase import DownloadRecord, Purchase
from src.infrastructure.database.models.user import User

__all__ = [
    # Base
    "Base",
    "IdMixin",
    "TimestampMixin",
    "UTCDateTime",
    # Identity
    "User",
    # Batches
    "Batch",
    "BatchSubject",
    "StudentAssignment",
    "AssignedSubject",
    # Catalog
    "Course",
    "ContentItem",
    "ContentFile",
    "ContentPurchaser",
    # Enrollment
    "Enrollment",
    "ProgressEntry",
    # Purchases
    "Purchase",
    "DownloadRecord",
    # Assessments
    "Assessment",
    "AssessmentStudent",
    # Attendance
    "AttendanceSheet",
    "AttendanceEntry",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enumerations shared by ORM models, DTOs and services."""

from enum import Enum


class UserRole(str, Enum):
    """Roles asserted by the external identity layer."""

    ADMIN = "admin"
    TEACHER = "teacher"
    USER = "user"


class BatchCategory(str, Enum):
    """Exam track a batch prepares for."""

    JEE = "jee"
    NEET = "neet"
    BOARDS = "boards"


class CourseType(str, Enum):
    """Course catalog discriminator."""

    UNPAID = "unpaid"
    PAID = "paid"


class CourseMode(str, Enum):
    """Delivery mode chosen at enrollment."""

    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle states.

    EXPIRED is never stored; it is derived from expires_at at read time.
    """

    PENDING = "pending"
    ENROLLED = "enrolled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class EnrollmentPaymentStatus(str, Enum):
    """Payment lifecycle of an enrollment."""

    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class ContentType(str, Enum):
    """Purchasable content catalogs."""

    NOTES = "notes"
    MATERIALS = "materials"


class PurchaseStatus(str, Enum):
    """Purchase lifecycle states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PurchasePaymentStatus(str, Enum):
    """Payment lifecycle of a purchase."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class AttendanceStatus(str, Enum):
    """Per-student attendance mark."""

    PRESENT = "present"
    ABSENT = "absent"
    NO_CLASS = "no_class"


class DenyReason(str, Enum):
    """Why an access check failed."""

    NOT_PURCHASED = "NOT_PURCHASED"
    EXPIRED = "EXPIRED"
    NOT_ENROLLED = "NOT_ENROLLED"
    NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT = "NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT"

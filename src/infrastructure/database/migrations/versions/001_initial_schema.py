# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial entitlement schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates users, batches and assignments, the course and content catalogs,
enrollments, the purchase ledger, assessments and attendance.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create entitlement tables."""
    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ==========================================================================
    # Batches
    # ==========================================================================
    op.create_table(
        "batches",
        _id(),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("classes", sa.JSON, nullable=False),
        sa.Column("schedule", sa.String(200), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_batches_category_active", "batches", ["category", "is_active"])

    op.create_table(
        "batch_subjects",
        _id(),
        sa.Column(
            "batch_id",
            sa.String(36),
            sa.ForeignKey("batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("teacher_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.UniqueConstraint("batch_id", "name", name="uq_batch_subjects_batch_name"),
    )
    op.create_index("ix_batch_subjects_batch_id", "batch_subjects", ["batch_id"])
    op.create_index("ix_batch_subjects_teacher_id", "batch_subjects", ["teacher_id"])

    op.create_table(
        "batch_student_assignments",
        _id(),
        sa.Column(
            "batch_id",
            sa.String(36),
            sa.ForeignKey("batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_classes", sa.JSON, nullable=False),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("batch_id", "student_id", name="uq_batch_student_assignments"),
    )
    op.create_index(
        "ix_batch_student_assignments_batch_id", "batch_student_assignments", ["batch_id"]
    )
    op.create_index(
        "ix_batch_student_assignments_student_id", "batch_student_assignments", ["student_id"]
    )

    op.create_table(
        "batch_assigned_subjects",
        _id(),
        sa.Column(
            "assignment_id",
            sa.String(36),
            sa.ForeignKey("batch_student_assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey("batch_subjects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("subject_name", sa.String(100), nullable=False),
        sa.Column("teacher_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.UniqueConstraint("assignment_id", "subject_name", name="uq_assigned_subjects"),
    )
    op.create_index(
        "ix_batch_assigned_subjects_assignment_id", "batch_assigned_subjects", ["assignment_id"]
    )
    op.create_index(
        "ix_batch_assigned_subjects_subject_id", "batch_assigned_subjects", ["subject_id"]
    )

    # ==========================================================================
    # Catalog
    # ==========================================================================
    op.create_table(
        "courses",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("course_type", sa.String(20), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_videos", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "content_items",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "content_files",
        _id(),
        sa.Column(
            "content_id",
            sa.String(36),
            sa.ForeignKey("content_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("size_bytes", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_content_files_content_id", "content_files", ["content_id"])

    op.create_table(
        "content_purchasers",
        _id(),
        sa.Column(
            "content_id",
            sa.String(36),
            sa.ForeignKey("content_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("content_id", "student_id", name="uq_content_purchasers"),
    )
    op.create_index("ix_content_purchasers_content_id", "content_purchasers", ["content_id"])
    op.create_index("ix_content_purchasers_student_id", "content_purchasers", ["student_id"])

    # ==========================================================================
    # Enrollments
    # ==========================================================================
    op.create_table(
        "enrollments",
        _id(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", sa.String(36), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("course_type", sa.String(20), nullable=False),
        sa.Column("enrollment_status", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("gateway_order_id", sa.String(100), nullable=True),
        sa.Column("gateway_payment_id", sa.String(100), nullable=True),
        sa.Column("gateway_signature", sa.String(256), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mode", sa.String(20), nullable=False),
        sa.Column("schedule", sa.String(200), nullable=False, server_default=""),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )
    op.create_index(
        "ix_enrollments_student_status", "enrollments", ["student_id", "enrollment_status"]
    )
    op.create_index(
        "ix_enrollments_course_status", "enrollments", ["course_id", "enrollment_status"]
    )
    op.create_index("ix_enrollments_payment_status", "enrollments", ["payment_status"])
    op.create_index("ix_enrollments_gateway_order_id", "enrollments", ["gateway_order_id"])

    op.create_table(
        "enrollment_progress",
        _id(),
        sa.Column(
            "enrollment_id",
            sa.String(36),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("video_id", sa.String(100), nullable=False),
        sa.Column("watch_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("enrollment_id", "video_id", name="uq_enrollment_progress_video"),
    )
    op.create_index(
        "ix_enrollment_progress_enrollment_id", "enrollment_progress", ["enrollment_id"]
    )

    # ==========================================================================
    # Purchases
    # ==========================================================================
    op.create_table(
        "purchases",
        _id(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "content_id", sa.String(36), sa.ForeignKey("content_items.id"), nullable=False
        ),
        sa.Column("purchase_status", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("gateway_order_id", sa.String(100), nullable=True),
        sa.Column("gateway_payment_id", sa.String(100), nullable=True),
        sa.Column("gateway_signature", sa.String(256), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("access_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "content_id", name="uq_purchases_student_content"),
    )
    op.create_index("ix_purchases_student_status", "purchases", ["student_id", "purchase_status"])
    op.create_index("ix_purchases_content_status", "purchases", ["content_id", "purchase_status"])
    op.create_index("ix_purchases_purchased_at", "purchases", ["purchased_at"])
    op.create_index("ix_purchases_gateway_order_id", "purchases", ["gateway_order_id"])

    op.create_table(
        "purchase_downloads",
        _id(),
        sa.Column(
            "purchase_id",
            sa.String(36),
            sa.ForeignKey("purchases.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("pdf_id", sa.String(36), nullable=False),
        sa.Column("downloaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
    )
    op.create_index("ix_purchase_downloads_purchase_id", "purchase_downloads", ["purchase_id"])

    # ==========================================================================
    # Assessments
    # ==========================================================================
    op.create_table(
        "assessments",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("class_name", sa.String(50), nullable=False),
        sa.Column("subject_name", sa.String(100), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("full_marks", sa.Integer, nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("instructions", sa.Text, nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "full_marks BETWEEN 1 AND 1000",
            name="valid_assessment_full_marks",
        ),
    )
    op.create_index(
        "ix_assessments_batch_class_subject",
        "assessments",
        ["batch_id", "class_name", "subject_name"],
    )
    op.create_index("ix_assessments_created_by", "assessments", ["created_by"])

    op.create_table(
        "assessment_students",
        _id(),
        sa.Column(
            "assessment_id",
            sa.String(36),
            sa.ForeignKey("assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("marks_scored", sa.Integer, nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("evaluated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("assessment_id", "student_id", name="uq_assessment_students"),
    )
    op.create_index(
        "ix_assessment_students_assessment_id", "assessment_students", ["assessment_id"]
    )
    op.create_index("ix_assessment_students_student_id", "assessment_students", ["student_id"])

    # ==========================================================================
    # Attendance
    # ==========================================================================
    op.create_table(
        "attendance_sheets",
        _id(),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column("subject_name", sa.String(100), nullable=False),
        sa.Column("teacher_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("batch_id", "subject_name", "date", name="uq_attendance_sheets_day"),
    )
    op.create_index("ix_attendance_sheets_batch_id", "attendance_sheets", ["batch_id"])

    op.create_table(
        "attendance_entries",
        _id(),
        sa.Column(
            "sheet_id",
            sa.String(36),
            sa.ForeignKey("attendance_sheets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("marked_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("sheet_id", "student_id", name="uq_attendance_entries_student"),
    )
    op.create_index("ix_attendance_entries_sheet_id", "attendance_entries", ["sheet_id"])
    op.create_index("ix_attendance_entries_student_id", "attendance_entries", ["student_id"])


def downgrade() -> None:
    """Drop entitlement tables in reverse dependency order."""
    op.drop_table("attendance_entries")
    op.drop_table("attendance_sheets")
    op.drop_table("assessment_students")
    op.drop_table("assessments")
    op.drop_table("purchase_downloads")
    op.drop_table("purchases")
    op.drop_table("enrollment_progress")
    op.drop_table("enrollments")
    op.drop_table("content_purchasers")
    op.drop_table("content_files")
    op.drop_table("content_items")
    op.drop_table("courses")
    op.drop_table("batch_assigned_subjects")
    op.drop_table("batch_student_assignments")
    op.drop_table("batch_subjects")
    op.drop_table("batches")
    op.drop_table("users")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for course acquisition.

This module provides the EnrollmentService class for:
- Enrolling a student in a free or paid course
- Completing a paid enrollment after payment verification
- Cancelling a pending enrollment
- Tracking video progress
- Answering "is this enrollment valid right now"

State machine: pending -> enrolled | cancelled; enrolled -> expired is
derived from expires_at at read time. A cancelled record is reused when
the student enrolls again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import Settings
from src.domains.enrollment import rules
from src.domains.errors import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    PaymentVerificationError,
    ValidationError,
)
from src.infrastructure.database.models import Course, Enrollment, ProgressEntry, User
from src.infrastructure.database.repositories import (
    CourseRepository,
    EnrollmentRepository,
    UserRepository,
)
from src.infrastructure.payments.gateway import GatewayOrder, PaymentAssertion, PaymentGateway
from src.models.common import (
    CourseMode,
    CourseType,
    DenyReason,
    EnrollmentPaymentStatus,
    EnrollmentStatus,
    UserRole,
)
from src.models.enrollment import EnrollmentView, ProgressEntryView
from src.utils.datetime import days_from_now, utc_now

logger = logging.getLogger(__name__)


class CourseNotFoundError(NotFoundError):
    """Raised when a course is missing, inactive or in another catalog."""


class StudentNotFoundError(NotFoundError):
    """Raised when a student is not found."""


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment is not found."""


class AlreadyEnrolledError(ConflictError):
    """Raised when a pending or enrolled record already exists.

    Attributes:
        enrollment_id: The existing enrollment.
    """

    def __init__(self, message: str, enrollment_id: str) -> None:
        super().__init__(message, details={"enrollment_id": enrollment_id})
        self.enrollment_id = enrollment_id


class InvalidEnrollmentStateError(ConflictError):
    """Raised when a transition is not allowed from the current state."""


@dataclass
class EnrollmentCheckout:
    """Result of enroll().

    Attributes:
        enrollment: The stored enrollment.
        order: Gateway order to complete checkout with; None for free courses.
    """

    enrollment: Enrollment
    order: GatewayOrder | None = None

    @property
    def requires_payment(self) -> bool:
        return self.order is not None


class EnrollmentService:
    """Service for course enrollments.

    Attributes:
        db: Async database session.
        gateway: Payment gateway for paid courses.
        settings: Application settings (access window, currency).
    """

    def __init__(self, db: AsyncSession, gateway: PaymentGateway, settings: Settings) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            gateway: Payment gateway used to open orders and verify payments.
            settings: Application settings.
        """
        self.db = db
        self.gateway = gateway
        self.settings = settings
        self.enrollments = EnrollmentRepository(db)
        self.courses = CourseRepository(db)
        self.users = UserRepository(db)

    async def enroll(
        self,
        student_id: str,
        course_id: str,
        course_type: CourseType | None = None,
        mode: CourseMode = CourseMode.ONLINE,
        schedule: str = "",
        timeout: float | None = None,
    ) -> EnrollmentCheckout:
        """Enroll a student in a course.

        Free courses are enrolled immediately. Paid courses get a gateway
        order first; the record is only written once the order exists, so a
        gateway failure leaves nothing behind.

        Args:
            student_id: Student identifier.
            course_id: Course identifier.
            course_type: Catalog the caller expects the course to be in.
            mode: Attendance mode.
            schedule: Preferred schedule label.
            timeout: Gateway timeout in seconds.

        Returns:
            The enrollment and, for paid courses, the gateway order.

        Raises:
            CourseNotFoundError: If the course is unknown or inactive.
            StudentNotFoundError: If the student is unknown or inactive.
            AlreadyEnrolledError: If a pending or enrolled record exists.
            GatewayTimeoutError: If the gateway timed out.
            GatewayError: If the gateway rejected the order.
        """
        course = await self._get_course(course_id, course_type)
        await self._get_student(student_id)

        existing = await self.enrollments.get_for(student_id, course_id)
        if existing is not None and rules.blocks_new_enrollment(existing):
            raise AlreadyEnrolledError(
                "Student is already enrolled in this course",
                enrollment_id=existing.id,
            )

        order: GatewayOrder | None = None
        if not course.is_free:
            if course.price <= 0:
                raise ValidationError("Course has no price configured", field="price")
            order = await self.gateway.create_order(
                amount=course.price,
                currency=self.settings.payment.currency,
                receipt=f"enr_{uuid4().hex[:24]}",
                notes={"student_id": student_id, "course_id": course_id},
                timeout=timeout,
            )

        enrollment = existing or Enrollment(student_id=student_id, course_id=course_id)
        self._reset(enrollment, course, mode, schedule.strip(), order)
        if existing is None:
            self.enrollments.add(enrollment)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raced = await self.enrollments.get_for(student_id, course_id)
            raise AlreadyEnrolledError(
                "Student is already enrolled in this course",
                enrollment_id=raced.id if raced else "",
            ) from e

        logger.info(
            "Enrollment created: id=%s, student=%s, course=%s, status=%s",
            enrollment.id,
            student_id,
            course_id,
            enrollment.enrollment_status.value,
        )
        return EnrollmentCheckout(enrollment=await self.get_enrollment(enrollment.id), order=order)

    async def complete_payment(self, enrollment_id: str, assertion: PaymentAssertion) -> Enrollment:
        """Complete a paid enrollment.

        Safe to call more than once: an already completed enrollment is
        returned unchanged, and of two concurrent calls only one performs
        the transition.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            InvalidEnrollmentStateError: If the enrollment is not awaiting payment.
            PaymentVerificationError: If the order id or signature does not match.
        """
        enrollment = await self.get_enrollment(enrollment_id)

        if enrollment.payment_status == EnrollmentPaymentStatus.COMPLETED:
            logger.debug("Payment already completed: enrollment=%s", enrollment_id)
            return enrollment
        if (
            enrollment.enrollment_status != EnrollmentStatus.PENDING
            or enrollment.payment_status != EnrollmentPaymentStatus.PENDING
        ):
            raise InvalidEnrollmentStateError(
                "Enrollment is not awaiting payment",
                details={
                    "enrollment_id": enrollment_id,
                    "status": enrollment.enrollment_status.value,
                },
            )

        if assertion.order_id != enrollment.gateway_order_id:
            logger.warning(
                "Order mismatch: enrollment=%s, expected=%s, got=%s",
                enrollment_id,
                enrollment.gateway_order_id,
                assertion.order_id,
            )
            raise PaymentVerificationError(
                "Order id does not match the enrollment",
                details={"enrollment_id": enrollment_id},
            )
        if not self.gateway.verify_payment(assertion):
            logger.warning("Invalid payment signature: enrollment=%s", enrollment_id)
            raise PaymentVerificationError(
                "Payment signature verification failed",
                details={"enrollment_id": enrollment_id},
            )

        paid_at = utc_now()
        expires_at = days_from_now(self.settings.entitlement.paid_course_access_days, paid_at)
        won = await self.enrollments.mark_paid(
            enrollment_id,
            payment_id=assertion.payment_id,
            signature=assertion.signature,
            paid_at=paid_at,
            expires_at=expires_at,
        )
        await self.db.commit()

        if won:
            logger.info(
                "Payment completed: enrollment=%s, payment=%s, expires=%s",
                enrollment_id,
                assertion.payment_id,
                expires_at.isoformat(),
            )
        return await self.get_enrollment(enrollment_id)

    async def cancel(self, enrollment_id: str) -> Enrollment:
        """Cancel a pending enrollment.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            InvalidEnrollmentStateError: If the enrollment is already enrolled.
        """
        enrollment = await self.get_enrollment(enrollment_id)
        if enrollment.enrollment_status == EnrollmentStatus.CANCELLED:
            return enrollment
        if enrollment.enrollment_status != EnrollmentStatus.PENDING:
            raise InvalidEnrollmentStateError(
                "Only pending enrollments can be cancelled",
                details={
                    "enrollment_id": enrollment_id,
                    "status": enrollment.enrollment_status.value,
                },
            )

        await self.enrollments.mark_cancelled(enrollment_id)
        await self.db.commit()
        logger.info("Enrollment cancelled: id=%s", enrollment_id)
        return await self.get_enrollment(enrollment_id)

    async def update_progress(
        self,
        enrollment_id: str,
        video_id: str,
        watch_time: int,
    ) -> Enrollment:
        """Record watch progress for a video.

        Watch time never decreases: the stored value becomes the maximum of
        the stored and reported values.

        Raises:
            ValidationError: If video_id is blank or watch_time is out of range.
            EnrollmentNotFoundError: If the enrollment does not exist.
            AccessDeniedError: If the enrollment is not currently valid.
        """
        video_id = video_id.strip()
        if not video_id:
            raise ValidationError("Video id is required", field="video_id")
        if watch_time < 0 or watch_time > self.settings.entitlement.max_watch_time_seconds:
            raise ValidationError("Watch time is out of range", field="watch_time")

        enrollment = await self.get_enrollment(enrollment_id)
        self._require_valid(enrollment)

        now = utc_now()
        if not await self.enrollments.raise_watch_time(enrollment_id, video_id, watch_time, now):
            self.db.add(
                ProgressEntry(
                    enrollment_id=enrollment_id,
                    video_id=video_id,
                    watch_time=watch_time,
                    completed_at=now,
                )
            )
        await self.enrollments.touch(enrollment_id, now)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent call inserted the entry first
            await self.db.rollback()
            await self.enrollments.raise_watch_time(enrollment_id, video_id, watch_time, now)
            await self.enrollments.touch(enrollment_id, now)
            await self.db.commit()

        return await self.get_enrollment(enrollment_id)

    async def get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self.enrollments.get(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(
                f"Enrollment not found: {enrollment_id}",
                details={"enrollment_id": enrollment_id},
            )
        return enrollment

    async def find_enrollment(self, student_id: str, course_id: str) -> Enrollment | None:
        return await self.enrollments.get_for(student_id, course_id)

    async def list_student_enrollments(
        self,
        student_id: str,
        status: EnrollmentStatus | None = None,
    ) -> list[Enrollment]:
        """List a student's enrollments, filtering on the effective status."""
        if status in (EnrollmentStatus.ENROLLED, EnrollmentStatus.EXPIRED):
            candidates = await self.enrollments.list_for_student(
                student_id, [EnrollmentStatus.ENROLLED]
            )
            now = utc_now()
            return [e for e in candidates if rules.effective_status(e, now) == status]
        statuses = [status] if status is not None else None
        return await self.enrollments.list_for_student(student_id, statuses)

    async def is_valid_enrollment(self, student_id: str, course_id: str) -> bool:
        enrollment = await self.enrollments.get_for(student_id, course_id)
        return rules.is_valid_enrollment(enrollment)

    async def describe(self, enrollment_id: str) -> EnrollmentView:
        """Build the caller-facing view with derived status and progress."""
        enrollment = await self.get_enrollment(enrollment_id)
        course = await self.courses.get(enrollment.course_id)
        progress = rules.overall_progress(enrollment, course) if course else 0.0
        return EnrollmentView(
            id=enrollment.id,
            student_id=enrollment.student_id,
            course_id=enrollment.course_id,
            course_type=enrollment.course_type,
            status=rules.effective_status(enrollment),
            payment_status=enrollment.payment_status,
            mode=enrollment.mode,
            schedule=enrollment.schedule,
            amount=enrollment.amount,
            currency=enrollment.currency,
            gateway_order_id=enrollment.gateway_order_id,
            enrolled_at=enrollment.enrolled_at,
            paid_at=enrollment.paid_at,
            expires_at=enrollment.expires_at,
            last_accessed_at=enrollment.last_accessed_at,
            overall_progress=progress,
            progress=[ProgressEntryView.model_validate(p) for p in enrollment.progress],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _reset(
        self,
        enrollment: Enrollment,
        course: Course,
        mode: CourseMode,
        schedule: str,
        order: GatewayOrder | None,
    ) -> None:
        now = utc_now()
        enrollment.course_type = course.course_type
        enrollment.mode = mode
        enrollment.schedule = schedule
        enrollment.enrolled_at = now
        enrollment.is_active = True
        enrollment.gateway_payment_id = None
        enrollment.gateway_signature = None
        enrollment.paid_at = None
        enrollment.expires_at = None
        if order is None:
            enrollment.enrollment_status = EnrollmentStatus.ENROLLED
            enrollment.payment_status = EnrollmentPaymentStatus.NOT_REQUIRED
            enrollment.amount = Decimal("0")
            enrollment.gateway_order_id = None
        else:
            enrollment.enrollment_status = EnrollmentStatus.PENDING
            enrollment.payment_status = EnrollmentPaymentStatus.PENDING
            enrollment.amount = course.price
            enrollment.currency = order.currency
            enrollment.gateway_order_id = order.order_id

    @staticmethod
    def _require_valid(enrollment: Enrollment) -> None:
        if rules.is_valid_enrollment(enrollment):
            return
        reason = DenyReason.EXPIRED if rules.is_expired(enrollment) else DenyReason.NOT_ENROLLED
        raise AccessDeniedError(
            "Enrollment is not active",
            reason=reason.value,
            details={"enrollment_id": enrollment.id},
        )

    async def _get_course(self, course_id: str, course_type: CourseType | None) -> Course:
        course = await self.courses.get(course_id)
        if (
            course is None
            or not course.is_active
            or (course_type is not None and course.course_type != course_type)
        ):
            raise CourseNotFoundError(
                f"Course not found: {course_id}", details={"course_id": course_id}
            )
        return course

    async def _get_student(self, student_id: str) -> User:
        student = await self.users.get(student_id)
        if student is None or not student.is_active:
            raise StudentNotFoundError(
                f"Student not found: {student_id}", details={"student_id": student_id}
            )
        if student.role != UserRole.USER:
            raise ValidationError("Only students can enroll in courses", field="student_id")
        return student

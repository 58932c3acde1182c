# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control gate.

Answers whether an identity may open a protected resource right now. The
gate holds no state of its own; it asks the enrollment, purchase and
batch services and never writes except through open_content_file().
"""

from __future__ import annotations

import logging

from src.domains.access.resources import (
    AccessDecision,
    AssessmentResource,
    BatchResource,
    ContentFileResource,
    CourseVideoResource,
    Resource,
)
from src.domains.batch.service import BatchAssignmentService
from src.domains.enrollment import rules as enrollment_rules
from src.domains.enrollment.service import EnrollmentService
from src.domains.errors import AccessDeniedError, NotFoundError
from src.domains.purchase.service import PurchaseLedger
from src.infrastructure.database.models import ContentFile
from src.infrastructure.database.repositories import AssessmentRepository, ContentRepository
from src.models.common import DenyReason
from src.models.identity import Identity
from src.models.purchase import Requester

logger = logging.getLogger(__name__)


class AccessControlGate:
    """Entitlement checks for course videos, content files and batch resources.

    Attributes:
        enrollments: Enrollment service for course validity.
        ledger: Purchase ledger for content validity.
        batches: Batch service for eligibility and teaching checks.
        contents: Content repository for file ownership.
        assessments: Assessment repository for test scope.
    """

    def __init__(
        self,
        enrollments: EnrollmentService,
        ledger: PurchaseLedger,
        batches: BatchAssignmentService,
        contents: ContentRepository,
        assessments: AssessmentRepository,
    ) -> None:
        self.enrollments = enrollments
        self.ledger = ledger
        self.batches = batches
        self.contents = contents
        self.assessments = assessments

    async def can_access(self, identity: Identity, resource: Resource) -> AccessDecision:
        """Decide whether the identity may access the resource.

        Raises:
            NotFoundError: If the resource does not exist.
        """
        if isinstance(resource, ContentFileResource):
            # Ownership is checked for everyone, admins included
            content_file = await self._get_file(resource)
            if identity.is_admin:
                return AccessDecision.allow()
            return await self._content_decision(identity, content_file)

        if identity.is_admin:
            return AccessDecision.allow()

        if isinstance(resource, CourseVideoResource):
            return await self._course_decision(identity, resource)
        if isinstance(resource, BatchResource):
            return await self._batch_decision(
                identity, resource.batch_id, resource.class_name, resource.subject_name
            )
        if isinstance(resource, AssessmentResource):
            assessment = await self.assessments.get(resource.assessment_id)
            if assessment is None:
                raise NotFoundError(
                    f"Test not found: {resource.assessment_id}",
                    details={"assessment_id": resource.assessment_id},
                )
            return await self._batch_decision(
                identity, assessment.batch_id, assessment.class_name, assessment.subject_name
            )
        raise TypeError(f"Unsupported resource: {type(resource).__name__}")

    async def require_access(self, identity: Identity, resource: Resource) -> None:
        """Raise AccessDeniedError unless access is granted."""
        decision = await self.can_access(identity, resource)
        if not decision.allowed:
            reason = decision.reason or DenyReason.NOT_PURCHASED
            logger.info(
                "Access denied: user=%s, resource=%s, reason=%s",
                identity.user_id,
                type(resource).__name__,
                reason.value,
            )
            raise AccessDeniedError("Access denied", reason=reason.value)

    async def open_content_file(
        self,
        identity: Identity,
        content_id: str,
        file_id: str,
        requester: Requester | None = None,
    ) -> ContentFile:
        """Check access to a content file and audit the access.

        Returns:
            The file metadata the caller streams from storage.

        Raises:
            NotFoundError: If the file does not belong to the content.
            AccessDeniedError: If access is not granted.
        """
        resource = ContentFileResource(content_id=content_id, file_id=file_id)
        await self.require_access(identity, resource)

        purchase, reason = await self.ledger.access_check(identity.user_id, content_id)
        if purchase is not None and reason is None:
            await self.ledger.record_access(purchase.id, file_id, requester)
        return await self._get_file(resource)

    # =========================================================================
    # Decisions
    # =========================================================================

    async def _course_decision(
        self,
        identity: Identity,
        resource: CourseVideoResource,
    ) -> AccessDecision:
        enrollment = await self.enrollments.find_enrollment(identity.user_id, resource.course_id)
        if enrollment_rules.is_valid_enrollment(enrollment):
            return AccessDecision.allow()
        if enrollment is not None and enrollment_rules.is_expired(enrollment):
            return AccessDecision.deny(DenyReason.EXPIRED)
        return AccessDecision.deny(DenyReason.NOT_ENROLLED)

    async def _content_decision(
        self,
        identity: Identity,
        content_file: ContentFile,
    ) -> AccessDecision:
        content = await self.contents.get(content_file.content_id)
        if content is not None and content.is_free:
            return AccessDecision.allow()
        _, reason = await self.ledger.access_check(identity.user_id, content_file.content_id)
        if reason is None:
            return AccessDecision.allow()
        return AccessDecision.deny(reason)

    async def _batch_decision(
        self,
        identity: Identity,
        batch_id: str,
        class_name: str,
        subject_name: str,
    ) -> AccessDecision:
        if identity.is_teacher:
            if await self.batches.teacher_teaches(batch_id, identity.user_id, subject_name):
                return AccessDecision.allow()
            return AccessDecision.deny(DenyReason.NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT)

        eligible = await self.batches.eligible_students(batch_id, class_name, subject_name)
        if identity.user_id in eligible:
            return AccessDecision.allow()
        return AccessDecision.deny(DenyReason.NOT_ELIGIBLE_FOR_CLASS_OR_SUBJECT)

    async def _get_file(self, resource: ContentFileResource) -> ContentFile:
        content_file = await self.contents.get_file(resource.file_id)
        if content_file is None or content_file.content_id != resource.content_id:
            raise NotFoundError(
                f"File not found in content: {resource.file_id}",
                details={"content_id": resource.content_id, "file_id": resource.file_id},
            )
        return content_file

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service wiring.

Builds every domain service on one session so they share a transaction
boundary. The calling layer owns the session lifetime.

Example:
    async with get_session() as session:
        services = build_container(session)
        await services.access.require_access(identity, resource)
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import Settings, get_settings
from src.domains.access.gate import AccessControlGate
from src.domains.assessment.service import AssessmentService
from src.domains.attendance.service import AttendanceService
from src.domains.batch.service import BatchAssignmentService
from src.domains.enrollment.service import EnrollmentService
from src.domains.purchase.service import PurchaseLedger
from src.infrastructure.database.repositories import AssessmentRepository, ContentRepository
from src.infrastructure.payments.gateway import PaymentGateway
from src.infrastructure.payments.razorpay import RazorpayGateway


@dataclass
class Container:
    """Domain services bound to one session."""

    settings: Settings
    gateway: PaymentGateway
    batches: BatchAssignmentService
    enrollments: EnrollmentService
    purchases: PurchaseLedger
    assessments: AssessmentService
    attendance: AttendanceService
    access: AccessControlGate


def build_container(
    session: AsyncSession,
    settings: Settings | None = None,
    gateway: PaymentGateway | None = None,
) -> Container:
    """Construct all services for a session.

    Args:
        session: Session shared by every service.
        settings: Application settings; defaults to get_settings().
        gateway: Payment gateway; defaults to Razorpay from settings.

    Returns:
        The wired services.
    """
    settings = settings or get_settings()
    gateway = gateway or RazorpayGateway(settings.payment)

    batches = BatchAssignmentService(session)
    enrollments = EnrollmentService(session, gateway, settings)
    purchases = PurchaseLedger(session, gateway, settings)

    return Container(
        settings=settings,
        gateway=gateway,
        batches=batches,
        enrollments=enrollments,
        purchases=purchases,
        assessments=AssessmentService(session, batches),
        attendance=AttendanceService(session, batches),
        access=AccessControlGate(
            enrollments=enrollments,
            ledger=purchases,
            batches=batches,
            contents=ContentRepository(session),
            assessments=AssessmentRepository(session),
        ),
    )

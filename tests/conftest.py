# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Service tests run against a fresh in-memory SQLite database per test,
created from the ORM metadata. The payment gateway is replaced by an
in-process fake that signs assertions with a known secret.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal
from itertools import count
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.config.settings import (
    DatabaseSettings,
    EntitlementSettings,
    PaymentGatewaySettings,
    Settings,
)
from src.core.container import Container, build_container
from src.domains.batch.service import BatchAssignmentService
from src.infrastructure.database.connection import create_schema, create_sessionmaker
from src.infrastructure.database.models import Batch, ContentFile, ContentItem, Course, User
from src.infrastructure.payments.gateway import (
    GatewayOrder,
    PaymentAssertion,
    PaymentGateway,
    to_minor_units,
)
from src.infrastructure.payments.signature import compute_signature, verify_signature
from src.models.batch import BatchCreateRequest, StudentAssignmentInput, SubjectInput
from src.models.common import BatchCategory, ContentType, CourseType, UserRole

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
GATEWAY_SECRET = "test_key_secret"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")


# =============================================================================
# Payment Gateway
# =============================================================================


class FakeGateway(PaymentGateway):
    """In-process gateway that issues sequential order ids.

    Set ``error`` to make the next create_order calls raise it.
    """

    def __init__(self, secret: str = GATEWAY_SECRET) -> None:
        self.secret = secret
        self.orders: list[GatewayOrder] = []
        self.error: Exception | None = None
        self._ids = count(1)

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> GatewayOrder:
        if self.error is not None:
            raise self.error
        order = GatewayOrder(
            order_id=f"order_{next(self._ids):04d}",
            amount=to_minor_units(amount),
            currency=currency,
            receipt=receipt,
            notes=dict(notes or {}),
        )
        self.orders.append(order)
        return order

    def verify_payment(self, assertion: PaymentAssertion) -> bool:
        return verify_signature(
            assertion.order_id, assertion.payment_id, assertion.signature, self.secret
        )

    def assertion_for(self, order_id: str, payment_id: str = "pay_0001") -> PaymentAssertion:
        """Build the assertion a client would bring back after checkout."""
        return PaymentAssertion(
            order_id=order_id,
            payment_id=payment_id,
            signature=compute_signature(order_id, payment_id, self.secret),
        )


# =============================================================================
# Settings and Database
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at SQLite and the fake gateway secret."""
    return Settings(
        environment="development",
        db=DatabaseSettings(url_override=TEST_DB_URL),
        payment=PaymentGatewaySettings(key_id="rzp_test_key", key_secret=GATEWAY_SECRET),
        entitlement=EntitlementSettings(),
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session configured like the application sessionmaker."""
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def services(db_session: AsyncSession, settings: Settings, gateway: FakeGateway) -> Container:
    """All domain services bound to the test session."""
    return build_container(db_session, settings=settings, gateway=gateway)


# =============================================================================
# Factories
# =============================================================================


class Factory:
    """Creates committed catalog, user and batch rows for tests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._seq = count(1)

    async def _save(self, entity: Any) -> Any:
        self.session.add(entity)
        await self.session.commit()
        return entity

    async def user(self, role: UserRole = UserRole.USER, is_active: bool = True) -> User:
        n = next(self._seq)
        return await self._save(
            User(
                name=f"{role.value.title()} {n}",
                email=f"{role.value}{n}@example.com",
                role=role,
                is_active=is_active,
            )
        )

    async def student(self, is_active: bool = True) -> User:
        return await self.user(UserRole.USER, is_active=is_active)

    async def teacher(self) -> User:
        return await self.user(UserRole.TEACHER)

    async def admin(self) -> User:
        return await self.user(UserRole.ADMIN)

    async def course(
        self,
        price: str = "0",
        course_type: CourseType = CourseType.UNPAID,
        total_videos: int = 10,
        is_active: bool = True,
    ) -> Course:
        return await self._save(
            Course(
                title=f"Course {next(self._seq)}",
                course_type=course_type,
                price=Decimal(price),
                total_videos=total_videos,
                is_active=is_active,
            )
        )

    async def paid_course(self, price: str = "4999.00") -> Course:
        return await self.course(price=price, course_type=CourseType.PAID)

    async def content(
        self,
        price: str = "0",
        content_type: ContentType = ContentType.NOTES,
        files: int = 1,
        is_active: bool = True,
    ) -> ContentItem:
        n = next(self._seq)
        return await self._save(
            ContentItem(
                title=f"Notes {n}",
                content_type=content_type,
                price=Decimal(price),
                is_active=is_active,
                files=[
                    ContentFile(title=f"Chapter {i}", original_name=f"chapter_{i}.pdf")
                    for i in range(1, files + 1)
                ],
            )
        )

    async def batch(
        self,
        created_by: str,
        classes: list[str] | None = None,
        subjects: dict[str, str | None] | None = None,
        category: BatchCategory = BatchCategory.JEE,
    ) -> Batch:
        """Create a batch through the service so subjects are validated."""
        if subjects is None:
            subjects = {"Physics": None, "Chemistry": None}
        request = BatchCreateRequest(
            name=f"Batch {next(self._seq)}",
            category=category,
            classes=classes or ["11", "12"],
            subjects=[SubjectInput(name=name, teacher_id=tid) for name, tid in subjects.items()],
        )
        return await BatchAssignmentService(self.session).create_batch(request, created_by)

    async def assign(
        self,
        batch_id: str,
        student_id: str,
        classes: list[str],
        subjects: list[str],
    ) -> None:
        await BatchAssignmentService(self.session).assign_students(
            batch_id,
            [
                StudentAssignmentInput(
                    student_id=student_id,
                    assigned_classes=classes,
                    assigned_subjects=subjects,
                )
            ],
        )


@pytest.fixture
def factory(db_session: AsyncSession) -> Factory:
    return Factory(db_session)

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local mirror of users known to the external identity layer."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin, enum_column
from src.models.common import UserRole


class User(IdMixin, TimestampMixin, Base):
    """User with a role of admin, teacher or user (student)."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(enum_column(UserRole, "user_role"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.USER

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

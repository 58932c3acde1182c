# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resolved identity handed to the core by the external auth layer."""

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import UserRole


class Identity(BaseModel):
    """Identity assertion trusted verbatim.

    Attributes:
        user_id: Authenticated user identifier.
        role: Authenticated user role.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.USER

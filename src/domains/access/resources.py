# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Protected resources and access decisions."""

from dataclasses import dataclass
from typing import Union

from src.models.common import DenyReason


@dataclass(frozen=True)
class CourseVideoResource:
    """A video of an enrolled course."""

    course_id: str
    video_id: str | None = None


@dataclass(frozen=True)
class ContentFileResource:
    """A PDF belonging to a notes or materials item."""

    content_id: str
    file_id: str


@dataclass(frozen=True)
class BatchResource:
    """Anything scoped to a batch class and subject, e.g. an attendance sheet."""

    batch_id: str
    class_name: str
    subject_name: str


@dataclass(frozen=True)
class AssessmentResource:
    """A batch test."""

    assessment_id: str


Resource = Union[CourseVideoResource, ContentFileResource, BatchResource, AssessmentResource]


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an access check.

    Attributes:
        allowed: Whether access is granted.
        reason: Deny reason when not allowed.
    """

    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> "AccessDecision":
        return cls(allowed=False, reason=reason)

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control package."""

from src.domains.access.gate import AccessControlGate
from src.domains.access.resources import (
    AccessDecision,
    AssessmentResource,
    BatchResource,
    ContentFileResource,
    CourseVideoResource,
    Resource,
)

__all__ = [
    "AccessControlGate",
    "AccessDecision",
    "AssessmentResource",
    "BatchResource",
    "ContentFileResource",
    "CourseVideoResource",
    "Resource",
]

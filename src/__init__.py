"""CourseGate entitlement core.

Batch assignment, course enrollment, notes purchases and access control
for an education marketplace.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"

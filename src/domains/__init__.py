# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the entitlement core.

Each domain module provides a service that validates input, enforces
state rules and persists through the repositories.

Domains:
    batch: Batch, subject and student assignment management.
    enrollment: Course enrollment state machine.
    purchase: Notes and materials purchase ledger.
    access: Access decisions for protected resources.
    assessment: Batch-scoped tests, marks and statistics.
    attendance: Attendance sheets and student statistics.
"""

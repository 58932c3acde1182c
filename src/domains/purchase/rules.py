# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Purchase validity.

``is_valid_purchase`` is the only definition of a valid purchase; every
access path goes through PurchaseLedger, which calls it.
"""

from datetime import datetime

from src.infrastructure.database.models import Purchase
from src.models.common import DenyReason, PurchaseStatus
from src.utils.datetime import has_passed


def is_valid_purchase(purchase: Purchase | None, now: datetime | None = None) -> bool:
    """Completed, active and either lifetime or not yet expired."""
    if purchase is None:
        return False
    return (
        purchase.purchase_status == PurchaseStatus.COMPLETED
        and purchase.is_active
        and not has_passed(purchase.expires_at, now)
    )


def deny_reason(purchase: Purchase | None, now: datetime | None = None) -> DenyReason | None:
    """Why a purchase does not grant access, or None if it does."""
    if is_valid_purchase(purchase, now):
        return None
    if (
        purchase is not None
        and purchase.purchase_status == PurchaseStatus.COMPLETED
        and purchase.is_active
    ):
        return DenyReason.EXPIRED
    return DenyReason.NOT_PURCHASED


def blocks_new_purchase(purchase: Purchase, now: datetime | None = None) -> bool:
    """A pending record or a still valid completed record blocks a new purchase."""
    if purchase.purchase_status == PurchaseStatus.PENDING and purchase.is_active:
        return True
    return is_valid_purchase(purchase, now)

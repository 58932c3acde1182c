# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Purchase domain package.

This package provides the notes and materials purchase ledger:
- Free and paid purchases with payment verification
- Validity checks used by access control
- Download audit and ledger statistics
"""

from src.domains.purchase.rules import is_valid_purchase
from src.domains.purchase.service import (
    AlreadyPurchasedError,
    ContentNotFoundError,
    InvalidPurchaseStateError,
    PurchaseCheckout,
    PurchaseLedger,
    PurchaseNotFoundError,
)

__all__ = [
    "PurchaseLedger",
    "PurchaseCheckout",
    "is_valid_purchase",
    "ContentNotFoundError",
    "PurchaseNotFoundError",
    "AlreadyPurchasedError",
    "InvalidPurchaseStateError",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Checkout signature helpers.

The gateway signs ``order_id|payment_id`` with HMAC-SHA256 keyed by the
merchant secret and hex-encodes the digest.
"""

import hashlib
import hmac


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Compute the hex HMAC-SHA256 signature for an order and payment."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Verify a checkout signature in constant time.

    An empty secret never verifies.
    """
    if not secret or not signature or not signature.isascii():
        return False
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature.strip().lower())

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment gateway integration.

Example:
    from src.infrastructure.payments import RazorpayGateway, PaymentAssertion

    gateway = RazorpayGateway(settings.payment)
    ok = gateway.verify_payment(PaymentAssertion(order_id, payment_id, signature))
"""

from src.infrastructure.payments.gateway import (
    GatewayOrder,
    PaymentAssertion,
    PaymentGateway,
    to_minor_units,
)
from src.infrastructure.payments.razorpay import RazorpayGateway
from src.infrastructure.payments.signature import compute_signature, verify_signature

__all__ = [
    "GatewayOrder",
    "PaymentAssertion",
    "PaymentGateway",
    "RazorpayGateway",
    "compute_signature",
    "verify_signature",
    "to_minor_units",
]

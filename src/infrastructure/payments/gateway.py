# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment gateway abstraction.

The entitlement core only needs two things from a gateway: creating an
order for an amount, and verifying the payment assertion the client
brings back after checkout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


@dataclass(frozen=True)
class GatewayOrder:
    """Order created on the gateway.

    Attributes:
        order_id: Gateway order identifier.
        amount: Amount in minor units (paise for INR).
        currency: ISO currency code.
        receipt: Merchant receipt reference.
        status: Gateway order status.
    """

    order_id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"
    notes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentAssertion:
    """Checkout result returned by the client for verification."""

    order_id: str
    payment_id: str
    signature: str


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer minor units."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    """Abstract payment gateway used by enrollments and purchases."""

    @abstractmethod
    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> GatewayOrder:
        """Create an order for a major-unit amount.

        Args:
            amount: Amount in major units (rupees).
            currency: ISO currency code.
            receipt: Merchant receipt reference.
            notes: Free-form metadata stored with the order.
            timeout: Seconds to wait before giving up.

        Returns:
            The created order.

        Raises:
            GatewayTimeoutError: If the gateway did not answer in time.
            GatewayError: If the gateway rejected the request.
        """

    @abstractmethod
    def verify_payment(self, assertion: PaymentAssertion) -> bool:
        """Check the assertion signature against the gateway secret."""

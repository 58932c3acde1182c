# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Razorpay payment gateway client.

Orders are created through the Razorpay REST API with HTTP basic auth
(key id and key secret). Amounts are sent in paise.

Example:
    gateway = RazorpayGateway(settings.payment)
    order = await gateway.create_order(Decimal("499"), "INR", receipt="purchase_42")
"""

import logging
from decimal import Decimal
from typing import Any

import httpx

from src.core.config.settings import PaymentGatewaySettings
from src.domains.errors import GatewayError, GatewayTimeoutError
from src.infrastructure.payments.gateway import (
    GatewayOrder,
    PaymentAssertion,
    PaymentGateway,
    to_minor_units,
)
from src.infrastructure.payments.signature import verify_signature

logger = logging.getLogger(__name__)

# Razorpay rejects receipts longer than 40 characters
MAX_RECEIPT_LENGTH = 40


class RazorpayGateway(PaymentGateway):
    """PaymentGateway backed by the Razorpay orders API.

    Attributes:
        settings: Gateway credentials and defaults.
    """

    def __init__(
        self,
        settings: PaymentGatewaySettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            settings: Gateway credentials and defaults.
            client: Optional shared client. When omitted a client is
                opened per request.
        """
        self.settings = settings
        self._client = client

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.settings.key_id, self.settings.key_secret.get_secret_value())

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> GatewayOrder:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt[:MAX_RECEIPT_LENGTH],
            "notes": notes or {},
        }
        effective_timeout = timeout if timeout is not None else self.settings.timeout

        try:
            if self._client is not None:
                response = await self._client.post(
                    "/orders", json=payload, auth=self._auth(), timeout=effective_timeout
                )
            else:
                async with httpx.AsyncClient(
                    base_url=self.settings.base_url,
                    timeout=effective_timeout,
                ) as client:
                    response = await client.post("/orders", json=payload, auth=self._auth())
        except httpx.TimeoutException as e:
            logger.warning("Gateway order timed out: receipt=%s", receipt)
            raise GatewayTimeoutError(
                "Payment gateway timed out",
                details={"receipt": receipt, "timeout": effective_timeout},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Gateway request failed: receipt=%s, error=%s", receipt, str(e))
            raise GatewayError(
                "Payment gateway request failed",
                details={"receipt": receipt},
            ) from e

        if response.status_code >= 400:
            logger.warning(
                "Gateway rejected order (%d): %s",
                response.status_code,
                response.text,
            )
            raise GatewayError(
                "Payment gateway rejected the order",
                details={"status_code": response.status_code, "receipt": receipt},
            )

        try:
            data = response.json()
            order = GatewayOrder(
                order_id=data["id"],
                amount=int(data.get("amount", payload["amount"])),
                currency=data.get("currency", currency),
                receipt=data.get("receipt", payload["receipt"]),
                status=data.get("status", "created"),
                notes=data.get("notes") or {},
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Gateway returned an unreadable order: receipt=%s", receipt)
            raise GatewayError(
                "Payment gateway returned an invalid order",
                details={"status_code": response.status_code, "receipt": receipt},
            ) from e

        logger.debug("Created gateway order %s for receipt %s", order.order_id, receipt)
        return order

    def verify_payment(self, assertion: PaymentAssertion) -> bool:
        return verify_signature(
            assertion.order_id,
            assertion.payment_id,
            assertion.signature,
            self.settings.key_secret.get_secret_value(),
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the payment gateway client and signature checks."""

import json
from decimal import Decimal

import httpx
import pytest

from src.core.config.settings import PaymentGatewaySettings
from src.domains.errors import GatewayError, GatewayTimeoutError
from src.infrastructure.payments import (
    PaymentAssertion,
    RazorpayGateway,
    compute_signature,
    to_minor_units,
    verify_signature,
)

SECRET = "rzp_secret"


@pytest.fixture
def gateway_settings() -> PaymentGatewaySettings:
    return PaymentGatewaySettings(
        key_id="rzp_test_key",
        key_secret=SECRET,  # type: ignore[arg-type]
        base_url="https://gateway.test/v1",
    )


def make_gateway(settings: PaymentGatewaySettings, handler) -> RazorpayGateway:
    client = httpx.AsyncClient(
        base_url=settings.base_url,
        transport=httpx.MockTransport(handler),
    )
    return RazorpayGateway(settings, client=client)


class TestSignature:
    """Tests for HMAC signature helpers."""

    def test_known_vector(self) -> None:
        """Test the digest is hex HMAC-SHA256 over order_id|payment_id."""
        signature = compute_signature("order_1", "pay_1", SECRET)

        assert len(signature) == 64
        assert verify_signature("order_1", "pay_1", signature, SECRET)

    def test_rejects_tampered_payment(self) -> None:
        signature = compute_signature("order_1", "pay_1", SECRET)

        assert not verify_signature("order_1", "pay_2", signature, SECRET)
        assert not verify_signature("order_2", "pay_1", signature, SECRET)

    def test_rejects_wrong_secret(self) -> None:
        signature = compute_signature("order_1", "pay_1", "other")

        assert not verify_signature("order_1", "pay_1", signature, SECRET)

    def test_accepts_uppercase_hex(self) -> None:
        signature = compute_signature("order_1", "pay_1", SECRET).upper()

        assert verify_signature("order_1", "pay_1", signature, SECRET)

    @pytest.mark.parametrize("signature", ["", "not-hex", "é" * 64])
    def test_rejects_malformed_signatures(self, signature: str) -> None:
        assert not verify_signature("order_1", "pay_1", signature, SECRET)

    def test_empty_secret_never_verifies(self) -> None:
        signature = compute_signature("order_1", "pay_1", "")

        assert not verify_signature("order_1", "pay_1", signature, "")


class TestMinorUnits:
    """Tests for amount conversion."""

    @pytest.mark.parametrize(
        "amount,expected",
        [(Decimal("499"), 49900), (Decimal("499.99"), 49999), (Decimal("0.005"), 1)],
    )
    def test_to_minor_units(self, amount: Decimal, expected: int) -> None:
        assert to_minor_units(amount) == expected


class TestRazorpayGateway:
    """Tests for RazorpayGateway.create_order."""

    @pytest.mark.asyncio
    async def test_create_order_success(self, gateway_settings) -> None:
        """Test order payload and response parsing."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "id": "order_ABC",
                    "amount": seen["body"]["amount"],
                    "currency": "INR",
                    "receipt": seen["body"]["receipt"],
                    "status": "created",
                },
            )

        gateway = make_gateway(gateway_settings, handler)
        order = await gateway.create_order(Decimal("1499.50"), "INR", receipt="r" * 60)

        assert order.order_id == "order_ABC"
        assert order.amount == 149950
        assert seen["url"] == "https://gateway.test/v1/orders"
        assert seen["auth"].startswith("Basic ")
        assert len(seen["body"]["receipt"]) == 40

    @pytest.mark.asyncio
    async def test_timeout_is_retryable(self, gateway_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(gateway_settings, handler)

        with pytest.raises(GatewayTimeoutError) as exc_info:
            await gateway.create_order(Decimal("10"), "INR", receipt="r1", timeout=0.5)

        assert exc_info.value.retryable
        assert exc_info.value.details["timeout"] == 0.5

    @pytest.mark.asyncio
    async def test_rejected_order(self, gateway_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"description": "bad amount"}})

        gateway = make_gateway(gateway_settings, handler)

        with pytest.raises(GatewayError) as exc_info:
            await gateway.create_order(Decimal("10"), "INR", receipt="r1")

        assert not exc_info.value.retryable
        assert exc_info.value.details["status_code"] == 400

    @pytest.mark.asyncio
    async def test_connection_error(self, gateway_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        gateway = make_gateway(gateway_settings, handler)

        with pytest.raises(GatewayError):
            await gateway.create_order(Decimal("10"), "INR", receipt="r1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"text": "<html>maintenance</html>"},
            {"json": {"status": "created"}},
            {"json": ["order_1"]},
            {"json": {"id": "order_1", "amount": "ten"}},
        ],
    )
    async def test_unreadable_order_body(self, gateway_settings, body) -> None:
        """Test a 2xx reply without a usable order surfaces as GatewayError."""
        gateway = make_gateway(gateway_settings, lambda request: httpx.Response(200, **body))

        with pytest.raises(GatewayError) as exc_info:
            await gateway.create_order(Decimal("10"), "INR", receipt="r1")

        assert exc_info.value.code == "gateway_error"
        assert exc_info.value.details["status_code"] == 200

    def test_verify_payment_uses_key_secret(self, gateway_settings) -> None:
        gateway = RazorpayGateway(gateway_settings)
        good = PaymentAssertion("order_1", "pay_1", compute_signature("order_1", "pay_1", SECRET))
        bad = PaymentAssertion("order_1", "pay_1", "0" * 64)

        assert gateway.verify_payment(good)
        assert not gateway.verify_payment(bad)

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for service wiring, logging setup and the maintenance CLI."""

import logging

import pytest
import structlog

from src.core.container import build_container
from src.infrastructure.payments.razorpay import RazorpayGateway
from src.maintenance import build_parser
from src.utils.logging import (
    REDACTED,
    bind_context,
    clear_context,
    get_logger,
    redact_sensitive,
    setup_logging,
)


class TestBuildContainer:
    """Tests for build_container."""

    def test_services_share_session(self, services, db_session) -> None:
        assert services.batches.db is db_session
        assert services.attendance.batches is services.batches
        assert services.assessments.batches is services.batches

    def test_injected_gateway_is_used(self, services, gateway) -> None:
        assert services.gateway is gateway
        assert services.purchases.gateway is gateway

    def test_default_gateway_from_settings(self, db_session, settings) -> None:
        container = build_container(db_session, settings=settings)

        assert isinstance(container.gateway, RazorpayGateway)
        assert container.settings is settings


class TestMaintenanceParser:
    """Tests for the maintenance command line."""

    def test_resync_requires_content_ids(self) -> None:
        parser = build_parser()

        args = parser.parse_args(["resync-purchasers", "c1", "c2"])

        assert args.command == "resync-purchasers"
        assert args.content_ids == ["c1", "c2"]
        with pytest.raises(SystemExit):
            parser.parse_args(["resync-purchasers"])

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_simple_commands(self) -> None:
        assert build_parser().parse_args(["check"]).command == "check"
        assert build_parser().parse_args(["create-schema"]).command == "create-schema"


class TestLogging:
    """Smoke tests for logging setup."""

    def test_setup_logging_configures_root(self, settings) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(settings)

            assert len(root.handlers) == 1
            assert logging.getLogger("sqlalchemy").level == logging.WARNING
            assert get_logger(__name__) is not None
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_context_binding(self) -> None:
        try:
            bind_context(request_id="abc")
            assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}
        finally:
            clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_sensitive_keys_redacted(self) -> None:
        event = {"event": "payment_verified", "signature": "abc123", "order_id": "order_1"}

        redacted = redact_sensitive(None, "info", event)

        assert redacted["signature"] == REDACTED
        assert redacted["order_id"] == "order_1"

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy shared by every entitlement domain.

Each error carries a stable ``code`` that the calling layer can map to a
response, and a ``retryable`` flag telling the caller whether re-submitting
(with fresh input where relevant) can succeed. Domain services subclass
these for narrower cases, e.g. ``BatchNotFoundError(NotFoundError)``.
"""

from __future__ import annotations

from typing import Any


class EntitlementError(Exception):
    """Base exception for entitlement core errors.

    Attributes:
        code: Stable machine-readable error code.
        retryable: Whether the caller may retry the operation.
        message: Human-readable error description.
        details: Optional structured context for the caller.
    """

    code: str = "entitlement_error"
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for the calling layer."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(EntitlementError):
    """Raised for malformed or out-of-range input. No state is changed."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        if field is not None:
            self.details.setdefault("field", field)


class NotFoundError(EntitlementError):
    """Raised when a referenced batch, course, content or user is absent."""

    code = "not_found"


class ConflictError(EntitlementError):
    """Raised when a uniqueness rule or a state transition rule is violated."""

    code = "conflict"


class PaymentVerificationError(EntitlementError):
    """Raised when a payment signature does not verify.

    The record stays pending; the client may retry with a fresh assertion.
    """

    code = "payment_verification_failed"
    retryable = True


class AccessDeniedError(EntitlementError):
    """Raised when an entitlement predicate is false.

    Attributes:
        reason: Deny reason code the caller can render.
    """

    code = "access_denied"

    def __init__(self, message: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.reason = reason
        self.details.setdefault("reason", reason)


class GatewayError(EntitlementError):
    """Raised when the payment gateway rejects or fails a request."""

    code = "gateway_error"


class GatewayTimeoutError(GatewayError):
    """Raised when the payment gateway does not answer in time.

    Nothing is committed before a gateway call succeeds, so retrying is safe.
    """

    code = "gateway_timeout"
    retryable = True

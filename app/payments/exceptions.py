"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    └── PaymentProcessingError - Payment provider failures
        └── MercadoPagoError - MercadoPago API failures
            ├── MercadoPagoAuthenticationError - Bad access token (permanent)
            └── MercadoPagoUnavailableError - Timeout, 5xx, 429 (transient)

    SignatureVerificationError - Webhook signature rejected (inherits PermissionDeniedError)

Usage:
    from payments.exceptions import MercadoPagoError

    try:
        status = adapter.get_payment_status(access_token, payment_id)
    except MercadoPagoError as e:
        logger.warning("Status lookup failed", extra={"error_code": e.error_code})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, PermissionDeniedError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentProcessingError(PaymentError):
    """Raised when the payment provider cannot complete an operation."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# MercadoPago Exceptions
# =============================================================================


class MercadoPagoError(PaymentProcessingError):
    """
    Base exception for MercadoPago API failures.

    Attributes:
        status_code: HTTP status returned by MercadoPago, if any
        is_retryable: Whether a later identical call may succeed

    The status oracle treats every MercadoPagoError as "no change"; the
    checkout surfaces a generic message. Upstream bodies only go into
    details for logging.
    """

    default_error_code: str = "MERCADOPAGO_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class MercadoPagoAuthenticationError(MercadoPagoError):
    """The tenant's access token was rejected (401/403)."""

    default_error_code: str = "MERCADOPAGO_AUTH_FAILED"
    is_retryable: bool = False


class MercadoPagoUnavailableError(MercadoPagoError):
    """Timeout, connection failure, rate limit or 5xx from MercadoPago."""

    default_error_code: str = "MERCADOPAGO_UNAVAILABLE"
    is_retryable: bool = True


# =============================================================================
# Webhook Exceptions
# =============================================================================


class SignatureVerificationError(PermissionDeniedError):
    """
    Raised when a webhook signature cannot be verified.

    Carries the rejection reason in details for logs; responses only
    ever say the signature was invalid.
    """

    default_error_code: str = "INVALID_SIGNATURE"


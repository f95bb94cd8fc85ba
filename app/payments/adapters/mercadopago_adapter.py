"""
MercadoPago API adapter for payment operations.

This module provides the MercadoPagoAdapter class which encapsulates all
MercadoPago REST calls. All MercadoPago traffic goes through this adapter
to ensure consistent error handling, timeouts and logging.

Features:
- Bounded timeout on every call
- Translation of HTTP and network failures to domain exceptions
- Structured logging with timing metrics
- Idempotency keys on charge creation

Configuration (via settings):
- MERCADOPAGO_API_BASE_URL: API root (default: https://api.mercadopago.com)
- MERCADOPAGO_API_TIMEOUT_SECONDS: Per-call timeout (default: 10)

Access tokens are per tenant (payments.PaymentGateway), so every method
takes the token explicitly.

Usage:
    from payments.adapters import MercadoPagoAdapter

    adapter = MercadoPagoAdapter(http=requests.Session())
    payment = adapter.get_payment(gateway.access_token, "1234567890")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

import requests
from django.conf import settings

from payments.exceptions import (
    MercadoPagoAuthenticationError,
    MercadoPagoError,
    MercadoPagoUnavailableError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class MercadoPagoPayment:
    """
    A payment as reported by GET /v1/payments/{id}.

    Attributes:
        id: MercadoPago payment id (stringified)
        status: Raw MercadoPago status (approved, in_process, rejected, ...)
        status_detail: Reason code accompanying the status
        raw_response: Full response body (for debugging)
    """

    id: str
    status: str
    status_detail: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreatePixPaymentParams:
    """
    Parameters for creating a PIX charge.

    Attributes:
        amount: Charge amount in the account currency
        description: Text shown on the payer's statement
        payer_email: Payer e-mail (MercadoPago requires one)
        payer_first_name / payer_last_name: Payer name
        notification_url: Webhook URL for this tenant
        idempotency_key: X-Idempotency-Key header value
        expires_at: When the PIX code stops accepting payment
        metadata: Echoed back by MercadoPago on the payment
    """

    amount: Decimal
    description: str
    payer_email: str
    idempotency_key: str
    expires_at: datetime
    payer_first_name: str = ""
    payer_last_name: str = ""
    notification_url: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.payer_email:
            raise ValueError("payer_email is required")


@dataclass
class PixPaymentResult:
    """
    Result of a PIX charge creation.

    Attributes:
        id: MercadoPago payment id (stringified)
        status: Initial status (normally pending)
        qr_code: PIX copy-and-paste code
        qr_code_base64: QR code image as base64 PNG
    """

    id: str
    status: str
    qr_code: str = ""
    qr_code_base64: str = ""
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Adapter
# =============================================================================


class MercadoPagoAdapter:
    """
    Adapter for MercadoPago REST operations.

    The HTTP session is injected so callers control connection pooling
    and tests can pass a mock.

    Usage:
        adapter = MercadoPagoAdapter(http=session)
        status = adapter.get_payment_status(access_token, payment_id)
    """

    def __init__(
        self,
        http: requests.Session | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.http = http or requests.Session()
        self.base_url = (base_url or settings.MERCADOPAGO_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.MERCADOPAGO_API_TIMEOUT_SECONDS

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def get_payment(self, access_token: str, payment_id: str) -> MercadoPagoPayment:
        """
        Retrieve a payment's authoritative status.

        Args:
            access_token: Tenant's MercadoPago access token
            payment_id: MercadoPago payment id

        Returns:
            MercadoPagoPayment

        Raises:
            MercadoPagoAuthenticationError: Token rejected
            MercadoPagoUnavailableError: Timeout, network failure, 429 or 5xx
            MercadoPagoError: Any other non-success or malformed response
        """
        data = self._request(
            "GET",
            f"/v1/payments/{payment_id}",
            access_token,
            log_context={"operation": "get_payment", "payment_id": payment_id},
        )

        status = data.get("status")
        if not isinstance(status, str) or not status:
            raise MercadoPagoError(
                "MercadoPago payment response has no status",
                details={"payment_id": payment_id},
            )

        return MercadoPagoPayment(
            id=str(data.get("id", payment_id)),
            status=status,
            status_detail=data.get("status_detail"),
            raw_response=data,
        )

    def get_payment_status(self, access_token: str, payment_id: str) -> str:
        """Shortcut returning only the raw MercadoPago status string."""
        return self.get_payment(access_token, payment_id).status

    def create_pix_payment(
        self,
        access_token: str,
        params: CreatePixPaymentParams,
    ) -> PixPaymentResult:
        """
        Create a PIX charge.

        Args:
            access_token: Tenant's MercadoPago access token
            params: Charge parameters

        Returns:
            PixPaymentResult with the PIX code to show the payer

        Raises:
            MercadoPagoAuthenticationError: Token rejected
            MercadoPagoUnavailableError: Timeout, network failure, 429 or 5xx
            MercadoPagoError: Any other non-success or malformed response
        """
        body: dict[str, Any] = {
            "transaction_amount": float(params.amount),
            "description": params.description,
            "payment_method_id": "pix",
            "payer": {
                "email": params.payer_email,
                "first_name": params.payer_first_name,
                "last_name": params.payer_last_name,
            },
            "metadata": params.metadata,
            "date_of_expiration": params.expires_at.isoformat(timespec="milliseconds"),
        }
        if params.notification_url:
            body["notification_url"] = params.notification_url

        data = self._request(
            "POST",
            "/v1/payments",
            access_token,
            json=body,
            headers={"X-Idempotency-Key": params.idempotency_key},
            log_context={
                "operation": "create_pix_payment",
                "idempotency_key": params.idempotency_key,
            },
        )

        payment_id = data.get("id")
        if not payment_id:
            raise MercadoPagoError(
                "MercadoPago did not return a payment id",
                details={"idempotency_key": params.idempotency_key},
            )

        transaction_data = (data.get("point_of_interaction") or {}).get(
            "transaction_data"
        ) or {}
        return PixPaymentResult(
            id=str(payment_id),
            status=str(data.get("status") or "pending"),
            qr_code=transaction_data.get("qr_code") or "",
            qr_code_base64=transaction_data.get("qr_code_base64") or "",
            raw_response=data,
        )

    # =========================================================================
    # HTTP Plumbing
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Perform one call and return the decoded JSON object.

        Translates network errors and non-2xx responses to MercadoPagoError
        subclasses. Response bodies are logged, never put in messages.
        """
        logger = self.get_logger()
        request_headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            **(headers or {}),
        }

        start_time = time.time()
        logger.info("Starting MercadoPago operation", extra=log_context)

        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                headers=request_headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                "MercadoPago request timed out",
                extra={**log_context, "timeout": self.timeout},
            )
            raise MercadoPagoUnavailableError(
                "MercadoPago request timed out",
                details={"timeout": self.timeout},
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                "Connection error to MercadoPago",
                extra=log_context,
                exc_info=True,
            )
            raise MercadoPagoUnavailableError(
                "Could not connect to MercadoPago",
                details={"error": str(e)},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        log_context = {
            **log_context,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }

        if response.status_code in (401, 403):
            logger.error("MercadoPago rejected the access token", extra=log_context)
            raise MercadoPagoAuthenticationError(
                "MercadoPago rejected the access token",
                status_code=response.status_code,
            )

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("MercadoPago unavailable", extra=log_context)
            raise MercadoPagoUnavailableError(
                "MercadoPago is unavailable",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        if not response.ok:
            logger.error(
                "MercadoPago request failed",
                extra={**log_context, "body": response.text[:500]},
            )
            raise MercadoPagoError(
                "MercadoPago request failed",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error("MercadoPago returned invalid JSON", extra=log_context)
            raise MercadoPagoError(
                "MercadoPago returned an invalid response",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise MercadoPagoError(
                "MercadoPago returned an unexpected response",
                status_code=response.status_code,
            )

        logger.info("MercadoPago operation completed", extra=log_context)
        return data

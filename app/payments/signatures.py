"""
MercadoPago webhook signature verification.

MercadoPago signs each notification with the application's webhook
secret:

    x-signature: ts=1704908010,v1=618c853...
    x-request-id: bb56a2f1-6aae-46ac-982e-9dcd3581d08e

The signed manifest is

    id:<data.id>;request-id:<x-request-id>;ts:<ts>;

and v1 is its HMAC-SHA256 hex digest. Alphanumeric payment ids are
signed in lower case.

Usage:
    from payments.signatures import WebhookSignatureVerifier

    verifier = WebhookSignatureVerifier()
    if not verifier.verify(payment_id, request.headers):
        return JsonResponse({"error": "Invalid signature"}, status=401)
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from collections.abc import Callable, Mapping

from django.conf import settings

from payments.exceptions import SignatureVerificationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature"
REQUEST_ID_HEADER = "x-request-id"

# Timestamps above this are milliseconds (year 33658 in seconds).
MILLISECOND_THRESHOLD = 10**12


def build_manifest(payment_id: str, request_id: str, ts: str) -> str:
    """Build the string MercadoPago signs."""
    if payment_id.isalnum():
        payment_id = payment_id.lower()
    return f"id:{payment_id};request-id:{request_id};ts:{ts};"


def parse_signature_header(value: str) -> dict[str, str]:
    """Split 'ts=...,v1=...' into a dict; malformed parts are skipped."""
    parts: dict[str, str] = {}
    for chunk in (value or "").split(","):
        key, sep, val = chunk.partition("=")
        if sep:
            parts[key.strip()] = val.strip()
    return parts


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup for plain dicts and HttpHeaders."""
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return (value or "").strip()


class WebhookSignatureVerifier:
    """
    Verifies MercadoPago webhook signatures.

    Args:
        secret: Webhook secret (defaults to MERCADOPAGO_WEBHOOK_SECRET)
        tolerance: Accepted clock skew in seconds (defaults to
            WEBHOOK_TOLERANCE_SECONDS)
        clock: Returns the current unix time; injectable for tests
    """

    def __init__(
        self,
        secret: str | None = None,
        tolerance: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret if secret is not None else settings.MERCADOPAGO_WEBHOOK_SECRET
        self.tolerance = tolerance if tolerance is not None else settings.WEBHOOK_TOLERANCE_SECONDS
        self.clock = clock

    def verify(self, raw_payment_id: str, headers: Mapping[str, str]) -> bool:
        """
        Return True only for a fresh, correctly signed notification.

        Never raises; the reason for a rejection is logged.
        """
        try:
            self.check(raw_payment_id, headers)
        except SignatureVerificationError as e:
            logger.warning(
                "Webhook signature rejected",
                extra={"reason": e.error_code, **e.details},
            )
            return False
        return True

    def check(self, raw_payment_id: str, headers: Mapping[str, str]) -> None:
        """
        Verify a notification.

        Raises:
            SignatureVerificationError: With the rejection reason as error_code
        """
        if not self.secret:
            raise SignatureVerificationError(
                "Webhook secret is not configured",
                error_code="SECRET_NOT_CONFIGURED",
            )

        signature = _header(headers, SIGNATURE_HEADER)
        request_id = _header(headers, REQUEST_ID_HEADER)
        if not signature or not request_id:
            raise SignatureVerificationError(
                "Signature headers missing",
                error_code="SIGNATURE_HEADERS_MISSING",
            )

        parts = parse_signature_header(signature)
        ts = parts.get("ts", "")
        received = parts.get("v1", "")
        if not ts or not received:
            raise SignatureVerificationError(
                "Signature header malformed",
                error_code="SIGNATURE_MALFORMED",
            )

        try:
            timestamp = int(ts)
        except ValueError:
            raise SignatureVerificationError(
                "Signature timestamp is not an integer",
                error_code="SIGNATURE_MALFORMED",
            ) from None

        seconds = timestamp / 1000 if timestamp > MILLISECOND_THRESHOLD else timestamp
        skew = abs(self.clock() - seconds)
        if skew > self.tolerance:
            raise SignatureVerificationError(
                "Signature timestamp outside tolerance",
                error_code="SIGNATURE_EXPIRED",
                details={"skew_seconds": int(skew)},
            )

        manifest = build_manifest(str(raw_payment_id), request_id, ts)
        expected = hmac.new(
            self.secret.encode("utf-8"),
            manifest.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        if not hmac.compare_digest(expected, received.lower()):
            raise SignatureVerificationError(
                "Signature mismatch",
                error_code="SIGNATURE_MISMATCH",
                details={"request_id": request_id},
            )

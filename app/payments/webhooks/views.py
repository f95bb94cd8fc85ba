"""
Webhook endpoint for MercadoPago payment notifications.

MercadoPago notifies every payment change as

    POST /api/v1/payments/webhooks/mercadopago/<tenant_slug>/?data.id=123&type=payment
    {"type": "payment", "action": "payment.updated", "data": {"id": "123"}}

The payload is only a hint. The view verifies the signature and then
runs the same fulfillment pipeline as the portal poll, which asks
MercadoPago for the authoritative status itself.

Response codes:
    - 200: Handled, ignored, unknown tenant or unknown payment
    - 401: Signature rejected (nothing is read or written)
    - 500: Unexpected internal failure (MercadoPago retries)

Usage:
    # In urls.py
    from payments.webhooks.views import mercadopago_webhook

    urlpatterns = [
        path("webhooks/mercadopago/<slug:tenant_slug>/", mercadopago_webhook),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from clients.models import Tenant
from payments.services import FulfillmentOrchestrator
from payments.signatures import WebhookSignatureVerifier

logger = logging.getLogger(__name__)

PAYMENT_EVENT_TYPE = "payment"


def get_orchestrator() -> FulfillmentOrchestrator:
    """Orchestrator for one webhook request."""
    return FulfillmentOrchestrator.build_default()


def get_verifier() -> WebhookSignatureVerifier:
    """Signature verifier for one webhook request."""
    return WebhookSignatureVerifier()


def _parse_event(request: HttpRequest) -> tuple[str, str]:
    """
    Extract (event type, payment id) from body or query string.

    MercadoPago sends data.id and type as query parameters as well as in
    the JSON body; the signature is computed over the query parameter.
    """
    try:
        body = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        body = {}
    if not isinstance(body, dict):
        body = {}

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    event_type = str(body.get("type") or request.GET.get("type") or request.GET.get("topic") or "")
    payment_id = request.GET.get("data.id") or data.get("id") or ""
    return event_type.strip().lower(), str(payment_id).strip()


@csrf_exempt
@require_POST
def mercadopago_webhook(request: HttpRequest, tenant_slug: str) -> JsonResponse:
    """
    Receive a MercadoPago notification and advance the payment.

    Fulfillment runs inline: the panel call is bounded by
    PROVISIONING_TIMEOUT_SECONDS, and running it here means a webhook
    that arrives before any portal poll still completes the renewal.
    """
    event_type, payment_id = _parse_event(request)

    if event_type != PAYMENT_EVENT_TYPE or not payment_id:
        logger.info(
            "Webhook ignored",
            extra={"tenant_slug": tenant_slug, "event_type": event_type, "has_id": bool(payment_id)},
        )
        return JsonResponse({"ok": True, "message": "Ignored"})

    if not get_verifier().verify(payment_id, request.headers):
        return JsonResponse({"ok": False, "error": "Invalid signature"}, status=401)

    try:
        tenant = Tenant.objects.filter(slug=tenant_slug, is_active=True).first()
        if tenant is None:
            logger.warning("Webhook for unknown tenant", extra={"tenant_slug": tenant_slug})
            return JsonResponse({"ok": True})

        outcome = get_orchestrator().handle_webhook(tenant.pk, payment_id)
    except Exception:
        logger.exception(
            "Webhook processing failed",
            extra={"tenant_slug": tenant_slug, "external_payment_id": payment_id},
        )
        return JsonResponse({"ok": False}, status=500)

    logger.info(
        "Webhook processed",
        extra={
            "tenant_slug": tenant_slug,
            "external_payment_id": payment_id,
            "phase": outcome.phase if outcome else None,
        },
    )
    return JsonResponse({"ok": True})

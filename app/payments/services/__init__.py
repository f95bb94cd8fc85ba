"""
Payment services for the renewal pipeline.

This module provides:
- FulfillmentOrchestrator: Webhook and poll entry points, fulfillment state machine
- StatusOracle: Authoritative approval status from MercadoPago
- SideEffectNotifier: Post-fulfillment Celery dispatch
- CheckoutService: PIX charge creation for the client portal

Usage:
    from payments.services import FulfillmentOrchestrator

    orchestrator = FulfillmentOrchestrator.build_default()
    result = orchestrator.handle_poll(identity, payment_id)
    if result.success:
        body = result.data.to_response()
"""

from payments.services.checkout import CheckoutRequest, CheckoutService
from payments.services.fulfillment import FulfillmentOrchestrator, FulfillmentOutcome
from payments.services.notifier import SideEffectNotifier
from payments.services.status_oracle import StatusOracle, normalize_status

__all__ = [
    "CheckoutRequest",
    "CheckoutService",
    "FulfillmentOrchestrator",
    "FulfillmentOutcome",
    "SideEffectNotifier",
    "StatusOracle",
    "normalize_status",
]

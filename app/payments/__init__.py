"""
Payments app for client portal renewals paid through MercadoPago.

This app handles:
- PIX checkout from the client portal
- MercadoPago webhook verification and payment status lookups
- Exactly-once renewal of the subscriber at the reseller panel
- Post-renewal side effects (credit sync, WhatsApp confirmation)

Related apps:
    - clients: Tenants, subscribers and portal sessions
    - provisioning: Reseller panel integrations and gateways

Usage:
    from payments.services import FulfillmentOrchestrator

    # Portal poll
    result = FulfillmentOrchestrator.build_default().handle_poll(identity, payment_id)

    # Verified webhook
    outcome = FulfillmentOrchestrator.build_default().handle_webhook(tenant.id, payment_id)
"""

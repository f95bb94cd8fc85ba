"""
Webhook handling for payment notifications from MercadoPago.

Usage:
    # In urls.py
    from payments.webhooks.views import mercadopago_webhook

    urlpatterns = [
        path("webhooks/mercadopago/<slug:tenant_slug>/", mercadopago_webhook),
    ]
"""

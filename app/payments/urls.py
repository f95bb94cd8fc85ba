"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/mercadopago/<tenant_slug>/ - MercadoPago notifications
    - POST /portal/payment-status/ - Client portal payment poll
    - POST /portal/payments/ - Client portal PIX checkout

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import CreatePaymentView, PaymentStatusView
from payments.webhooks.views import mercadopago_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path(
        "webhooks/mercadopago/<slug:tenant_slug>/",
        mercadopago_webhook,
        name="mercadopago-webhook",
    ),
    # Client portal
    path("portal/payment-status/", PaymentStatusView.as_view(), name="portal-payment-status"),
    path("portal/payments/", CreatePaymentView.as_view(), name="portal-create-payment"),
]

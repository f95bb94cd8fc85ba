"""
Payments app configuration.

This app provides the renewal payment pipeline:
- PaymentRecord ledger and per-tenant MercadoPago credentials
- MercadoPago webhook verification and status lookups
- Fulfillment orchestration against reseller panels
- Client portal checkout and polling endpoints
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

"""
PaymentGateway model holding a tenant's payment provider credentials.

Each tenant connects its own MercadoPago account. The status oracle and
the PIX checkout read the active gateway with the lowest priority value.

Usage:
    from payments.models import PaymentGateway

    gateway = (
        PaymentGateway.objects.filter(tenant=tenant, is_active=True)
        .order_by("priority")
        .first()
    )
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class GatewayType(models.TextChoices):
    """Payment providers a tenant can connect."""

    MERCADOPAGO = "mercadopago", "MercadoPago"


class PaymentGateway(UUIDPrimaryKeyMixin, BaseModel):
    """
    A tenant's connected payment provider account.

    Fields:
        tenant: Owning reseller
        gateway_type: Provider (MercadoPago)
        access_token: Provider API credential (server-side only)
        is_active: Inactive gateways are ignored everywhere
        priority: Lower values are tried first
    """

    tenant = models.ForeignKey(
        "clients.Tenant",
        on_delete=models.CASCADE,
        related_name="payment_gateways",
    )
    name = models.CharField(
        max_length=120,
        help_text="Label shown in the dashboard",
    )
    gateway_type = models.CharField(
        max_length=20,
        choices=GatewayType.choices,
        default=GatewayType.MERCADOPAGO,
    )
    access_token = models.CharField(
        max_length=255,
        help_text="Provider access token (never sent to clients)",
    )
    is_active = models.BooleanField(default=True)
    priority = models.PositiveSmallIntegerField(
        default=0,
        help_text="Lower values are preferred",
    )

    class Meta:
        ordering = ["priority", "-created_at"]
        verbose_name = "Payment Gateway"
        verbose_name_plural = "Payment Gateways"
        indexes = [
            models.Index(
                fields=["tenant", "is_active", "priority"],
                name="gateway_tenant_active_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_gateway_type_display()})"

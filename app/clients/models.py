"""
Client and tenant models.

This module defines the models the renewal pipeline reads and updates:
- Tenant: Reseller organization; every other row is scoped to one
- Client: A subscriber on a reseller panel (the subscription being renewed)
- ClientPortalSession: Token issued to a subscriber for the client portal
- ClientEvent: Append-only audit trail (renewals, manual changes)

Design Decisions:
    - Client.integration uses SET_NULL so deleting a panel integration
      leaves clients in place; the pipeline reports missing linkage as a
      fulfillment error
    - Portal sessions identify the subscriber by WhatsApp username, which
      is how the portal login (PIN over WhatsApp) identifies them
    - ClientEvent rows are never updated after insert

Usage:
    from clients.models import Client, ClientEvent, EventType

    ClientEvent.objects.create(
        tenant=client.tenant,
        client=client,
        event_type=EventType.RENEWAL,
        message="Renewal via client portal",
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


# =============================================================================
# Enums
# =============================================================================


class EventType(models.TextChoices):
    """Kinds of entries in the client event log."""

    RENEWAL = "RENEWAL", "Renewal"
    PAYMENT = "PAYMENT", "Payment"
    NOTE = "NOTE", "Note"


# =============================================================================
# Tenant
# =============================================================================


class Tenant(UUIDPrimaryKeyMixin, BaseModel):
    """
    A reseller organization.

    The slug is public: it appears in the MercadoPago notification URL so
    that webhooks resolve to the right tenant ledger.
    """

    name = models.CharField(
        max_length=120,
        help_text="Display name of the reseller",
    )
    slug = models.SlugField(
        max_length=60,
        unique=True,
        help_text="Public identifier used in webhook URLs",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive tenants ignore webhooks and portal requests",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Client
# =============================================================================


class Client(UUIDPrimaryKeyMixin, BaseModel):
    """
    A subscriber account on a reseller panel.

    The fulfillment pipeline reads the panel linkage (integration and
    server_username) and, after a successful renewal, updates the plan,
    price, due date and possibly the panel password in one write.

    Fields:
        tenant: Owning reseller
        integration: Reseller panel the subscription lives on
        server_username / server_password: Subscriber credentials on the panel
        whatsapp_username: Portal identity of the subscriber
        plan_label, price_amount, price_currency: Current plan terms
        due_date: Current subscription expiry
    """

    # ==========================================================================
    # Ownership
    # ==========================================================================

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="clients",
        help_text="Reseller this client belongs to",
    )
    display_name = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Name shown in dashboards and payment descriptions",
    )
    whatsapp_username = models.CharField(
        max_length=40,
        db_index=True,
        help_text="WhatsApp number that identifies the client in the portal",
    )

    # ==========================================================================
    # Panel Linkage
    # ==========================================================================

    integration = models.ForeignKey(
        "provisioning.ProviderIntegration",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="clients",
        help_text="Reseller panel integration used for renewals",
    )
    server_username = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Subscriber username on the reseller panel",
    )
    server_password = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Subscriber password on the reseller panel (may be rotated on renewal)",
    )

    # ==========================================================================
    # Plan
    # ==========================================================================

    plan_label = models.CharField(
        max_length=60,
        blank=True,
        default="",
        help_text="Label of the current plan (e.g. Monthly)",
    )
    price_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Current plan price",
    )
    price_currency = models.CharField(
        max_length=3,
        blank=True,
        default="",
        help_text="ISO 4217 currency code of the plan price",
    )
    due_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the current subscription expires",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Client"
        verbose_name_plural = "Clients"
        indexes = [
            models.Index(fields=["tenant", "whatsapp_username"], name="client_tenant_whatsapp_idx"),
            models.Index(fields=["tenant", "due_date"], name="client_tenant_due_date_idx"),
        ]

    def __str__(self) -> str:
        return self.display_name or self.server_username or str(self.pk)


# =============================================================================
# Portal Session
# =============================================================================


class ClientPortalSession(UUIDPrimaryKeyMixin, BaseModel):
    """
    A client portal login.

    Issued after the subscriber confirms a PIN sent over WhatsApp; the
    token travels in portal request bodies. Expired sessions never
    resolve.
    """

    session_token = models.CharField(
        max_length=128,
        unique=True,
        help_text="Opaque token held by the portal frontend",
    )
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="portal_sessions",
    )
    whatsapp_username = models.CharField(
        max_length=40,
        help_text="WhatsApp number the session was issued to",
    )
    expires_at = models.DateTimeField(
        db_index=True,
        help_text="Session is rejected after this instant",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Client Portal Session"
        verbose_name_plural = "Client Portal Sessions"

    def __str__(self) -> str:
        return f"ClientPortalSession({self.whatsapp_username}, expires {self.expires_at:%Y-%m-%d %H:%M})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()


# =============================================================================
# Client Event Log
# =============================================================================


class ClientEvent(BaseModel):
    """Append-only audit entry for a client."""

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="client_events",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name="events",
    )
    event_type = models.CharField(
        max_length=20,
        choices=EventType.choices,
        db_index=True,
    )
    message = models.CharField(
        max_length=255,
        help_text="Human-readable summary",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Structured context (payment id, months, new due date)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Client Event"
        verbose_name_plural = "Client Events"
        indexes = [
            models.Index(fields=["client", "event_type"], name="client_event_type_idx"),
        ]

    def __str__(self) -> str:
        return f"ClientEvent({self.event_type}, {self.client_id})"

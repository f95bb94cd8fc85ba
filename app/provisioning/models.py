"""
Reseller panel integration model.

A ProviderIntegration stores how to reach one external IPTV panel for a
tenant. The renewal pipeline only reads it; the credit sync task writes
the credits_* and owner_username columns.

Provider variants:
    TOKEN: one authenticated HTTP call per renewal (NATV, FAST)
    SESSION: form login, CSRF token from the dashboard, then the renewal
        call on the same cookie session (ELITE)

Credential columns by provider:
    NATV: api_token = bearer token
    FAST: api_token = reseller token, api_secret = reseller secret
    ELITE: api_token = login e-mail, api_secret = login password
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class ProviderKind(models.TextChoices):
    """Supported reseller panels."""

    NATV = "NATV", "NATV"
    FAST = "FAST", "FAST"
    ELITE = "ELITE", "ELITE"


class ProviderVariant(models.TextChoices):
    """How a panel authenticates renewal calls."""

    TOKEN = "token", "Token-based"
    SESSION = "session", "Session-based"


PROVIDER_VARIANTS: dict[str, str] = {
    ProviderKind.NATV: ProviderVariant.TOKEN,
    ProviderKind.FAST: ProviderVariant.TOKEN,
    ProviderKind.ELITE: ProviderVariant.SESSION,
}


class ProviderIntegration(UUIDPrimaryKeyMixin, BaseModel):
    """
    Credentials and endpoint for one reseller panel account.

    Fields:
        tenant: Owning reseller
        provider: Panel kind, which selects the provisioning gateway
        base_url: Panel API root; empty uses the provider default
        api_token / api_secret: Provider-specific credentials
        is_active: Inactive integrations are never called
        owner_username: Reseller account name reported by the panel
        credits_last_known / credits_last_sync_at: Last credit sync result
    """

    tenant = models.ForeignKey(
        "clients.Tenant",
        on_delete=models.CASCADE,
        related_name="integrations",
    )
    name = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Label shown in the dashboard",
    )
    provider = models.CharField(
        max_length=20,
        choices=ProviderKind.choices,
        help_text="Reseller panel kind",
    )
    base_url = models.URLField(
        blank=True,
        default="",
        help_text="Panel API base URL (leave empty for the provider default)",
    )
    api_token = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Bearer token, reseller token or login e-mail depending on provider",
    )
    api_secret = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Reseller secret or login password depending on provider",
    )
    is_active = models.BooleanField(default=True)

    # ==========================================================================
    # Credit Sync
    # ==========================================================================

    owner_username = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Reseller account name reported by the panel",
    )
    credits_last_known = models.IntegerField(
        null=True,
        blank=True,
        help_text="Credit balance at the last sync",
    )
    credits_last_sync_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When credits were last synced",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Provider Integration"
        verbose_name_plural = "Provider Integrations"
        indexes = [
            models.Index(fields=["tenant", "provider"], name="integration_tenant_prov_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_provider_display()} ({self.name or self.pk})"

    @property
    def variant(self) -> str:
        """Authentication variant of this integration's provider."""
        return PROVIDER_VARIANTS[self.provider]

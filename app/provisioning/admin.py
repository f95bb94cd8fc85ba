"""
Provisioning admin configuration.
"""

from django.contrib import admin

from provisioning.models import ProviderIntegration
from provisioning.tasks import sync_integration_credits


@admin.register(ProviderIntegration)
class ProviderIntegrationAdmin(admin.ModelAdmin):
    """
    Admin configuration for ProviderIntegration.

    Credit columns are written by the sync task only.
    """

    list_display = [
        "id",
        "tenant",
        "name",
        "provider",
        "variant",
        "is_active",
        "owner_username",
        "credits_last_known",
        "credits_last_sync_at",
    ]
    list_filter = ["provider", "is_active"]
    search_fields = ["id", "name", "owner_username", "tenant__name", "tenant__slug"]
    readonly_fields = [
        "id",
        "owner_username",
        "credits_last_known",
        "credits_last_sync_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    actions = ["sync_credits"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "tenant", "name", "provider", "is_active"),
            },
        ),
        (
            "Panel Access",
            {
                "fields": ("base_url", "api_token", "api_secret"),
            },
        ),
        (
            "Credits",
            {
                "fields": ("owner_username", "credits_last_known", "credits_last_sync_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.action(description="Sync credits now")
    def sync_credits(self, request, queryset):
        """Queue a credit sync for each selected integration."""
        count = 0
        for integration_id in queryset.filter(is_active=True).values_list("id", flat=True):
            sync_integration_credits.delay(str(integration_id))
            count += 1
        self.message_user(request, f"Queued credit sync for {count} integrations.")

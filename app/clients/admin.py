"""
Client admin configuration.
"""

from django.contrib import admin

from clients.models import Client, ClientEvent, ClientPortalSession, Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "is_active", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    """
    Admin configuration for Client.

    Due date and plan normally change through renewals; editing them here
    is an operator correction and is not recorded in the event log.
    """

    list_display = [
        "id",
        "tenant",
        "display_name",
        "whatsapp_username",
        "server_username",
        "integration",
        "plan_label",
        "due_date",
    ]
    list_filter = ["tenant", "integration__provider"]
    search_fields = ["id", "display_name", "whatsapp_username", "server_username"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["integration"]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "tenant", "display_name", "whatsapp_username"),
            },
        ),
        (
            "Panel",
            {
                "fields": ("integration", "server_username", "server_password"),
            },
        ),
        (
            "Plan",
            {
                "fields": ("plan_label", "price_amount", "price_currency", "due_date"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(ClientPortalSession)
class ClientPortalSessionAdmin(admin.ModelAdmin):
    list_display = ["whatsapp_username", "tenant", "expires_at", "created_at"]
    list_filter = ["tenant"]
    search_fields = ["whatsapp_username"]
    readonly_fields = ["id", "session_token", "created_at", "updated_at"]
    ordering = ["-created_at"]


@admin.register(ClientEvent)
class ClientEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for ClientEvent.

    Read-only: the event log is an audit trail.
    """

    list_display = ["id", "tenant", "client", "event_type", "message", "created_at"]
    list_filter = ["event_type", "created_at"]
    search_fields = ["client__display_name", "client__whatsapp_username", "message"]
    readonly_fields = [
        "id",
        "tenant",
        "client",
        "event_type",
        "message",
        "metadata",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        """Disable adding events through admin."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for events (audit trail)."""
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        """Events are immutable once written."""
        return False

"""
Payment admin configuration.

Registers the payment ledger and gateway credentials with the Django
admin. Ledger rows are mostly read-only: the pipeline owns every state
change except the two recovery actions below.
"""

from django.contrib import admin, messages
from django_fsm import TransitionNotAllowed

from payments.locks import FulfillmentLock
from payments.models import PaymentGateway, PaymentRecord
from payments.state_machines import FulfillmentStatus

__all__ = [
    "PaymentGatewayAdmin",
    "PaymentRecordAdmin",
]


@admin.register(PaymentGateway)
class PaymentGatewayAdmin(admin.ModelAdmin):
    """Admin configuration for PaymentGateway."""

    list_display = ["id", "tenant", "name", "gateway_type", "is_active", "priority", "created_at"]
    list_filter = ["gateway_type", "is_active"]
    search_fields = ["id", "name", "tenant__name", "tenant__slug"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["tenant", "priority"]


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentRecord.

    Actions:
        requeue_failed: error -> pending, so the next webhook or poll
            renews the months still owed (after fixing the cause)
        release_stuck: processing -> pending for a renewal known to be
            abandoned
    """

    list_display = [
        "external_payment_id",
        "tenant",
        "client",
        "period",
        "price_amount",
        "approval_status",
        "fulfillment_status",
        "new_due_date",
        "created_at",
    ]
    list_filter = ["approval_status", "fulfillment_status", "period", "created_at"]
    search_fields = [
        "id",
        "external_payment_id",
        "client__display_name",
        "client__whatsapp_username",
    ]
    readonly_fields = [
        "id",
        "tenant",
        "client",
        "gateway",
        "external_payment_id",
        "period",
        "plan_label",
        "price_amount",
        "price_currency",
        "approval_status",
        "approved_at",
        "fulfillment_status",
        "fulfillment_error",
        "months_applied",
        "new_due_date",
        "fulfillment_started_at",
        "fulfilled_at",
        "pix_qr_code",
        "expires_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["requeue_failed", "release_stuck"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "tenant", "client", "gateway", "external_payment_id"),
            },
        ),
        (
            "Renewal Terms",
            {
                "fields": ("period", "plan_label", "price_amount", "price_currency"),
            },
        ),
        (
            "Approval",
            {
                "fields": ("approval_status", "approved_at"),
            },
        ),
        (
            "Fulfillment",
            {
                "fields": (
                    "fulfillment_status",
                    "fulfillment_error",
                    "months_applied",
                    "new_due_date",
                    "fulfillment_started_at",
                    "fulfilled_at",
                ),
            },
        ),
        (
            "PIX",
            {
                "fields": ("pix_qr_code", "expires_at"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.action(description="Requeue failed fulfillment")
    def requeue_failed(self, request, queryset):
        """Move failed fulfillments back to pending."""
        count = 0
        for record in queryset.filter(fulfillment_status=FulfillmentStatus.ERROR):
            try:
                record.requeue()
            except TransitionNotAllowed:
                continue
            record.save(
                update_fields=[
                    "fulfillment_status",
                    "fulfillment_error",
                    "fulfillment_started_at",
                    "updated_at",
                ]
            )
            count += 1
        self.message_user(request, f"Requeued {count} failed fulfillments.")

    @admin.action(description="Release stuck fulfillment")
    def release_stuck(self, request, queryset):
        """Move processing fulfillments back to pending."""
        lock = FulfillmentLock()
        count = sum(1 for record in queryset if lock.release(record))
        self.message_user(
            request,
            f"Released {count} stuck fulfillments. Check the panel before the next renewal runs.",
            level=messages.WARNING,
        )

    def has_add_permission(self, request) -> bool:
        """Payment records are created by checkout only."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payment records (audit trail)."""
        return False

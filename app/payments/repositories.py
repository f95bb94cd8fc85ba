"""
Django ORM implementations of the pipeline repositories.

Usage:
    from payments.repositories import DjangoCredentialsRepository, DjangoLedgerRepository

    ledger = DjangoLedgerRepository()
    record = ledger.get(tenant_id, "1234567890")
"""

from __future__ import annotations

import logging

from django.utils import timezone

from payments.models import PaymentGateway, PaymentRecord
from payments.state_machines import ApprovalStatus, FulfillmentStatus
from provisioning.models import ProviderIntegration

logger = logging.getLogger(__name__)

FULFILLMENT_FIELDS = [
    "fulfillment_status",
    "fulfillment_error",
    "months_applied",
    "new_due_date",
    "fulfilled_at",
    "fulfillment_started_at",
    "updated_at",
]


class DjangoLedgerRepository:
    """ORM-backed LedgerRepository."""

    def get(self, tenant_id, external_payment_id: str) -> PaymentRecord | None:
        return (
            PaymentRecord.objects.filter(
                tenant_id=tenant_id,
                external_payment_id=str(external_payment_id),
            )
            .select_related("tenant", "client")
            .first()
        )

    def set_approval_status(self, record: PaymentRecord, status: str) -> bool:
        now = timezone.now()
        changes = {"approval_status": status, "updated_at": now}
        if status == ApprovalStatus.APPROVED:
            changes["approved_at"] = now

        updated = (
            PaymentRecord.objects.filter(pk=record.pk)
            .exclude(approval_status=ApprovalStatus.APPROVED)
            .exclude(approval_status=status)
            .update(**changes)
        )
        if updated != 1:
            # Lost to a concurrent writer; reload what it wrote.
            record.refresh_from_db(fields=["approval_status", "approved_at", "updated_at"])
            return False

        for name, value in changes.items():
            setattr(record, name, value)
        return True

    def save_fulfillment(self, record: PaymentRecord) -> None:
        record.save(update_fields=FULFILLMENT_FIELDS)

    def force_error(self, record: PaymentRecord, safe_message: str) -> bool:
        updated = PaymentRecord.objects.filter(
            pk=record.pk,
            fulfillment_status=FulfillmentStatus.PROCESSING,
        ).update(
            fulfillment_status=FulfillmentStatus.ERROR,
            fulfillment_error=safe_message[:255],
            months_applied=record.months_applied,
            new_due_date=None,
            fulfilled_at=None,
            updated_at=timezone.now(),
        )
        record.refresh_from_db(fields=FULFILLMENT_FIELDS)
        return updated == 1


class DjangoCredentialsRepository:
    """ORM-backed CredentialsRepository. Never writes."""

    def get_active_gateways(self, tenant_id) -> list[PaymentGateway]:
        """Active gateways of a tenant, preferred first."""
        return list(
            PaymentGateway.objects.filter(tenant_id=tenant_id, is_active=True)
            .exclude(access_token="")
            .order_by("priority", "-created_at")
        )

    def get_active_gateway(self, tenant_id) -> PaymentGateway | None:
        gateways = self.get_active_gateways(tenant_id)
        return gateways[0] if gateways else None

    def get_gateway(self, tenant_id, gateway_id) -> PaymentGateway | None:
        """A tenant's gateway by id, active or not."""
        if gateway_id is None:
            return None
        return PaymentGateway.objects.filter(tenant_id=tenant_id, pk=gateway_id).first()

    def get_integration(self, integration_id) -> ProviderIntegration | None:
        if integration_id is None:
            return None
        return ProviderIntegration.objects.filter(pk=integration_id).first()

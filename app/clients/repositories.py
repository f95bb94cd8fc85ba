"""
Client repository used by the fulfillment pipeline.

The pipeline reads a client's panel linkage and, after a successful
renewal, performs one targeted update plus one audit event. Both writes
are expected to run inside the caller's transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.utils import timezone

from clients.models import Client, ClientEvent, EventType
from core.exceptions import NotFoundError

if TYPE_CHECKING:
    from payments.models import PaymentRecord
    from provisioning.gateways import RenewalResult

logger = logging.getLogger(__name__)


class DjangoClientRepository:
    """ORM-backed ClientRepository."""

    def get_subscription_ref(self, tenant_id, client_id) -> Client | None:
        """Load a client of a tenant with its panel integration, or None."""
        return (
            Client.objects.select_related("integration")
            .filter(pk=client_id, tenant_id=tenant_id)
            .first()
        )

    def apply_renewal(
        self,
        client: Client,
        record: PaymentRecord,
        result: RenewalResult,
        months: int,
    ) -> Client:
        """
        Apply a renewal to the client row and append a RENEWAL event.

        Plan terms come from the payment, falling back to the client's
        current values; currency falls back to DEFAULT_PRICE_CURRENCY.

        Raises:
            NotFoundError: The client row no longer exists for the tenant
        """
        changes: dict[str, Any] = {
            "plan_label": record.plan_label or client.plan_label,
            "price_amount": record.price_amount,
            "price_currency": (
                record.price_currency
                or client.price_currency
                or settings.DEFAULT_PRICE_CURRENCY
            ),
            "due_date": result.new_expiry,
        }
        if result.rotated_password:
            changes["server_password"] = result.rotated_password

        updated = Client.objects.filter(pk=client.pk, tenant_id=record.tenant_id).update(
            updated_at=timezone.now(),
            **changes,
        )
        if updated != 1:
            raise NotFoundError(
                "Client disappeared before the renewal could be recorded",
                details={"client_id": str(client.pk), "payment_record_id": str(record.pk)},
            )
        for name, value in changes.items():
            setattr(client, name, value)

        self.record_event(
            tenant_id=record.tenant_id,
            client_id=client.pk,
            event_type=EventType.RENEWAL,
            message=f"Renewed {months} month(s) via client portal payment",
            metadata={
                "payment_record_id": str(record.pk),
                "external_payment_id": record.external_payment_id,
                "months": months,
                "new_due_date": result.new_expiry.isoformat(),
                "password_rotated": bool(result.rotated_password),
            },
        )
        return client

    def record_event(
        self,
        tenant_id,
        client_id,
        event_type: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> ClientEvent:
        """Append one entry to the client event log."""
        return ClientEvent.objects.create(
            tenant_id=tenant_id,
            client_id=client_id,
            event_type=event_type,
            message=message[:255],
            metadata=metadata or {},
        )

"""
Side effects fired after a fulfillment reaches done or error.

Nothing here may affect the fulfillment result: each dispatch is a
Celery task queued with .delay(), and a failure to queue is logged and
dropped.

    done  -> credit sync + WhatsApp renewal confirmation
    error -> credit sync
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payments.state_machines import FulfillmentStatus

if TYPE_CHECKING:
    from payments.models import PaymentRecord

logger = logging.getLogger(__name__)


class SideEffectNotifier:
    """Queues post-fulfillment Celery tasks. Never raises."""

    def after_fulfillment(self, record: PaymentRecord, integration_id=None) -> None:
        status = record.fulfillment_status
        if status not in (FulfillmentStatus.DONE, FulfillmentStatus.ERROR):
            return

        if integration_id is not None:
            self._dispatch_credit_sync(record, integration_id)
        if status == FulfillmentStatus.DONE:
            self._dispatch_confirmation(record)

    def _dispatch_credit_sync(self, record: PaymentRecord, integration_id) -> None:
        from provisioning.tasks import sync_integration_credits

        try:
            sync_integration_credits.delay(str(integration_id))
        except Exception:
            logger.exception(
                "Failed to queue credit sync",
                extra={
                    "payment_record_id": str(record.pk),
                    "integration_id": str(integration_id),
                },
            )

    def _dispatch_confirmation(self, record: PaymentRecord) -> None:
        from payments.tasks import send_renewal_confirmation

        try:
            send_renewal_confirmation.delay(str(record.pk))
        except Exception:
            logger.exception(
                "Failed to queue renewal confirmation",
                extra={"payment_record_id": str(record.pk)},
            )

"""
Celery tasks for payment processing.

This module provides async tasks for:
- Sending the WhatsApp renewal confirmation after a fulfillment
- Releasing fulfillments stuck in processing (recovery sweep)

None of these tasks is retried, and none changes a fulfillment outcome.

Usage:
    from payments.tasks import send_renewal_confirmation

    send_renewal_confirmation.delay(str(record.pk))

    # Recovery sweep (via celery-beat, disabled by default)
    from payments.tasks import recover_stuck_fulfillments
    recover_stuck_fulfillments.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from django.conf import settings

from payments.models import PaymentRecord
from payments.state_machines import FulfillmentStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CONFIRMATION_SOFT_TIME_LIMIT = 30
RECOVERY_SOFT_TIME_LIMIT = 120


def format_confirmation_message(record: PaymentRecord) -> str:
    """Renewal confirmation text with the due date in the portal timezone."""
    due = record.new_due_date.astimezone(ZoneInfo(settings.PORTAL_TIMEZONE))
    return (
        "✅ Payment confirmed!\n"
        "Your subscription was renewed successfully.\n"
        f"📅 New due date: {due:%d/%m/%Y}\n\n"
        "If you need help, reply to this message."
    )


# =============================================================================
# Side Effects
# =============================================================================


@shared_task(soft_time_limit=CONFIRMATION_SOFT_TIME_LIMIT, ignore_result=True)
def send_renewal_confirmation(payment_record_id: str) -> dict:
    """
    Tell the subscriber their renewal went through.

    Args:
        payment_record_id: PaymentRecord UUID (string)

    Returns:
        Dict with send status
    """
    from clients.messaging import WhatsAppClient

    try:
        record = PaymentRecord.objects.select_related("client").get(pk=payment_record_id)
    except PaymentRecord.DoesNotExist:
        logger.error(
            "PaymentRecord not found for confirmation",
            extra={"payment_record_id": str(payment_record_id)},
        )
        return {"status": "not_found", "payment_record_id": str(payment_record_id)}

    if record.fulfillment_status != FulfillmentStatus.DONE or record.new_due_date is None:
        return {"status": "skipped", "payment_record_id": str(payment_record_id)}

    try:
        sent = WhatsAppClient().send_text(
            record.client.whatsapp_username,
            format_confirmation_message(record),
        )
    except SoftTimeLimitExceeded:
        logger.warning(
            "Renewal confirmation exceeded its time limit",
            extra={"payment_record_id": str(payment_record_id)},
        )
        return {"status": "timeout", "payment_record_id": str(payment_record_id)}
    except Exception:
        logger.exception(
            "Renewal confirmation failed",
            extra={"payment_record_id": str(payment_record_id)},
        )
        return {"status": "error", "payment_record_id": str(payment_record_id)}

    return {
        "status": "sent" if sent else "disabled",
        "payment_record_id": str(payment_record_id),
    }


# =============================================================================
# Recovery Sweep
# =============================================================================


@shared_task(soft_time_limit=RECOVERY_SOFT_TIME_LIMIT)
def recover_stuck_fulfillments() -> dict:
    """
    Periodic task releasing fulfillments stuck in processing.

    A request that dies between acquiring the fulfillment lock and
    recording the result leaves its record in processing. Records older
    than FULFILLMENT_STALE_AFTER_MINUTES go back to pending so the next
    webhook or poll retries them.

    Note: a released record may already have been renewed at the panel.
    The periodic task is created disabled; enable it only where panel
    renewals are safe to repeat or an operator checks each case.

    Returns:
        Dict with the number of released records
    """
    from payments.locks import FulfillmentLock

    stale_after = timedelta(minutes=settings.FULFILLMENT_STALE_AFTER_MINUTES)
    released = FulfillmentLock().reclaim_stale(stale_after)

    logger.info(
        "Recovery sweep completed",
        extra={"released": released, "stale_after_minutes": settings.FULFILLMENT_STALE_AFTER_MINUTES},
    )
    return {"released": released}

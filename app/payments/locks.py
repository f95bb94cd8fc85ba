"""
Fulfillment lock for payment records.

The lock is the only way a PaymentRecord enters fulfillment_status
PROCESSING. It is a single conditional UPDATE:

    UPDATE payment_record
       SET fulfillment_status = 'processing', fulfillment_started_at = now()
     WHERE id = ? AND tenant_id = ?
       AND approval_status = 'approved'
       AND fulfillment_status IN ('none', 'pending')

The database serializes concurrent updates of one row, so exactly one
caller sees a row count of 1. There is no in-process mutex and no Redis
lock; the guarantee holds across processes and hosts.

A caller that acquires the lock and then dies leaves the row PROCESSING.
reclaim_stale() (run by the recovery sweep) moves such rows back to
PENDING after FULFILLMENT_STALE_AFTER_MINUTES.

Usage:
    from payments.locks import FulfillmentLock

    lock = FulfillmentLock()
    if lock.try_acquire(record):
        ...  # this caller owns the renewal
    else:
        ...  # someone else is renewing; report "renewing"
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

from payments.models import PaymentRecord
from payments.state_machines import ApprovalStatus, FulfillmentStatus

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


class FulfillmentLock:
    """Storage-level compare-and-set on PaymentRecord.fulfillment_status."""

    def try_acquire(self, record: PaymentRecord) -> bool:
        """
        Move record to PROCESSING if nobody else has.

        On success the instance is updated to match the row. Never
        retried: a False result means another caller owns the renewal
        or the record is not eligible.
        """
        now = timezone.now()
        updated = PaymentRecord.objects.filter(
            pk=record.pk,
            tenant_id=record.tenant_id,
            approval_status=ApprovalStatus.APPROVED,
            fulfillment_status__in=FulfillmentStatus.lockable(),
        ).update(
            fulfillment_status=FulfillmentStatus.PROCESSING,
            fulfillment_started_at=now,
            updated_at=now,
        )

        if updated != 1:
            logger.info(
                "Fulfillment lock not acquired",
                extra={
                    "payment_record_id": str(record.pk),
                    "external_payment_id": record.external_payment_id,
                },
            )
            return False

        record.fulfillment_status = FulfillmentStatus.PROCESSING
        record.fulfillment_started_at = now
        record.updated_at = now
        logger.info(
            "Fulfillment lock acquired",
            extra={
                "payment_record_id": str(record.pk),
                "external_payment_id": record.external_payment_id,
            },
        )
        return True

    def release(self, record: PaymentRecord) -> bool:
        """
        Move one PROCESSING record back to PENDING.

        Operator action for a renewal known to be abandoned. Returns
        False when the record is no longer PROCESSING.
        """
        updated = PaymentRecord.objects.filter(
            pk=record.pk,
            fulfillment_status=FulfillmentStatus.PROCESSING,
        ).update(
            fulfillment_status=FulfillmentStatus.PENDING,
            fulfillment_started_at=None,
            updated_at=timezone.now(),
        )
        if updated == 1:
            record.fulfillment_status = FulfillmentStatus.PENDING
            record.fulfillment_started_at = None
        return updated == 1

    def reclaim_stale(self, older_than: datetime | timedelta) -> int:
        """
        Release PROCESSING records whose lock is older than a cutoff.

        Args:
            older_than: Cutoff instant, or an age relative to now

        Returns:
            Number of records moved back to PENDING
        """
        cutoff = timezone.now() - older_than if isinstance(older_than, timedelta) else older_than
        count = PaymentRecord.objects.filter(
            fulfillment_status=FulfillmentStatus.PROCESSING,
            fulfillment_started_at__lt=cutoff,
        ).update(
            fulfillment_status=FulfillmentStatus.PENDING,
            fulfillment_started_at=None,
            updated_at=timezone.now(),
        )
        if count:
            logger.warning(
                "Reclaimed stale fulfillment locks",
                extra={"count": count, "cutoff": cutoff.isoformat()},
            )
        return count

"""
State enums for payment models.

This module defines the enums used by PaymentRecord and the fulfillment
pipeline. These are Django TextChoices for database storage and admin
integration.

State Machines Overview:

ApprovalStatus (mirrors the payment provider):
    pending → processing → approved
    pending/processing → rejected / cancelled
    approved is sticky; refunds and chargebacks are recorded only while the
    payment has not been approved locally

FulfillmentStatus (driven by the pipeline, independent of approval):
    none/pending → processing → done
    none/pending → processing → error
    processing → pending (stale-lock recovery sweep)
    error → pending (operator requeue)
"""

from django.db import models


class ApprovalStatus(models.TextChoices):
    """
    Whether the payment itself has cleared at the provider.

    Terminal negative states: REJECTED, CANCELLED, REFUNDED, CHARGED_BACK
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"
    CHARGED_BACK = "charged_back", "Charged Back"

    @classmethod
    def terminal_negative(cls) -> frozenset[str]:
        """States in which the payment will never unlock fulfillment."""
        return frozenset(
            {cls.REJECTED, cls.CANCELLED, cls.REFUNDED, cls.CHARGED_BACK}
        )


# MercadoPago reports a few intermediate states we fold into PROCESSING.
# Anything not listed here is ignored by the status oracle.
MERCADOPAGO_STATUS_MAP: dict[str, str] = {
    "pending": ApprovalStatus.PENDING,
    "in_process": ApprovalStatus.PROCESSING,
    "in_mediation": ApprovalStatus.PROCESSING,
    "authorized": ApprovalStatus.PROCESSING,
    "approved": ApprovalStatus.APPROVED,
    "rejected": ApprovalStatus.REJECTED,
    "cancelled": ApprovalStatus.CANCELLED,
    "refunded": ApprovalStatus.REFUNDED,
    "charged_back": ApprovalStatus.CHARGED_BACK,
}


class FulfillmentStatus(models.TextChoices):
    """
    Whether the paid renewal has been applied at the reseller panel.

    Only meaningful once approval_status is APPROVED.

    State Flow:
        NONE/PENDING → PROCESSING (fulfillment lock only)
        PROCESSING → DONE (renewal applied, new_due_date set)
        PROCESSING → ERROR (terminal until an operator requeues)
    """

    NONE = "none", "None"
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    DONE = "done", "Done"
    ERROR = "error", "Error"

    @classmethod
    def lockable(cls) -> list[str]:
        """States from which the fulfillment lock may be acquired."""
        return [cls.NONE, cls.PENDING]


class FulfillmentPhase(models.TextChoices):
    """
    Phase reported to the client portal and returned by the orchestrator.

    PAYMENT_FAILED is reported for terminal negative approval states so the
    portal can stop polling instead of waiting on a payment that will never
    clear.
    """

    AWAITING_PAYMENT = "awaiting_payment", "Awaiting Payment"
    PAYMENT_FAILED = "payment_failed", "Payment Failed"
    RENEWING = "renewing", "Renewing"
    DONE = "done", "Done"
    ERROR = "error", "Error"


class RenewalPeriod(models.TextChoices):
    """Billing period purchased by a renewal payment."""

    MONTHLY = "MONTHLY", "Monthly"
    BIMONTHLY = "BIMONTHLY", "Bimonthly"
    QUARTERLY = "QUARTERLY", "Quarterly"
    SEMIANNUAL = "SEMIANNUAL", "Semiannual"
    ANNUAL = "ANNUAL", "Annual"


PERIOD_MONTHS: dict[str, int] = {
    RenewalPeriod.MONTHLY: 1,
    RenewalPeriod.BIMONTHLY: 2,
    RenewalPeriod.QUARTERLY: 3,
    RenewalPeriod.SEMIANNUAL: 6,
    RenewalPeriod.ANNUAL: 12,
}


def period_to_months(period: str | None) -> int:
    """Month count for a renewal period; unknown periods renew one month."""
    return PERIOD_MONTHS.get((period or "").upper(), 1)

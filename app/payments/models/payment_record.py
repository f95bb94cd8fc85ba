"""
PaymentRecord model: the payment ledger for client portal renewals.

One row per external payment id per tenant. The row carries two
independent state axes:

    approval_status: mirrors the payment provider (status oracle writes it)
    fulfillment_status: whether the paid renewal was applied at the panel

fulfillment_status only enters PROCESSING through the fulfillment lock
(payments.locks), a conditional QuerySet.update(). The django-fsm
transitions below cover every other move, so an illegal move raises
TransitionNotAllowed instead of silently corrupting the ledger.

Usage:
    from payments.models import PaymentRecord

    record = PaymentRecord.objects.get(tenant=tenant, external_payment_id="123")
    if lock.try_acquire(record):
        record.complete(new_due_date=result.new_expiry)
        record.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin
from payments.state_machines import (
    ApprovalStatus,
    FulfillmentStatus,
    RenewalPeriod,
    period_to_months,
)


class PaymentRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    Durable record of one renewal payment attempt.

    Invariants:
        - external_payment_id is unique within a tenant (webhook idempotency key)
        - renewal terms (period, plan, price) never change after creation
        - new_due_date is only set together with fulfillment_status=done
          (enforced by a check constraint)

    State Flow (fulfillment):
        NONE/PENDING -> PROCESSING   (payments.locks.FulfillmentLock only)
        PROCESSING -> DONE           complete()
        PROCESSING -> ERROR          fail()
        ERROR -> PENDING             requeue() (operator action)
        PROCESSING -> PENDING        stale-lock sweep (conditional update)
    """

    # ==========================================================================
    # Ownership
    # ==========================================================================

    tenant = models.ForeignKey(
        "clients.Tenant",
        on_delete=models.PROTECT,
        related_name="payment_records",
        help_text="Reseller whose ledger this payment belongs to",
    )
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.PROTECT,
        related_name="payment_records",
        help_text="Client whose subscription this payment renews",
    )
    gateway = models.ForeignKey(
        "payments.PaymentGateway",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_records",
        help_text="Gateway account that issued the charge",
    )
    external_payment_id = models.CharField(
        max_length=64,
        help_text="Payment id assigned by the provider",
    )

    # ==========================================================================
    # Renewal Terms (immutable)
    # ==========================================================================

    period = models.CharField(
        max_length=20,
        choices=RenewalPeriod.choices,
        default=RenewalPeriod.MONTHLY,
        help_text="Billing period purchased",
    )
    plan_label = models.CharField(
        max_length=60,
        blank=True,
        default="",
        help_text="Plan label applied to the client on renewal",
    )
    price_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Amount charged",
    )
    price_currency = models.CharField(
        max_length=3,
        blank=True,
        default="",
        help_text="ISO 4217 currency code of the charge",
    )

    # ==========================================================================
    # Approval (provider side)
    # ==========================================================================

    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        db_index=True,
        help_text="Payment status reported by the provider",
    )
    approved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the provider status was first seen as approved",
    )

    # ==========================================================================
    # Fulfillment (panel side)
    # ==========================================================================

    fulfillment_status = FSMField(
        default=FulfillmentStatus.NONE,
        choices=FulfillmentStatus.choices,
        db_index=True,
        # The fulfillment lock writes this column with QuerySet.update()
        # and mirrors it onto the instance afterwards.
        protected=False,
        help_text="Renewal progress at the reseller panel (managed by FSM)",
    )
    fulfillment_error = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Client-safe reason the renewal failed",
    )
    months_applied = models.PositiveSmallIntegerField(
        default=0,
        help_text="Months of this payment already added at the panel",
    )
    new_due_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Subscription expiry returned by the panel",
    )
    fulfillment_started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the fulfillment lock was acquired",
    )
    fulfilled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the renewal completed",
    )

    # ==========================================================================
    # PIX Checkout
    # ==========================================================================

    pix_qr_code = models.TextField(
        blank=True,
        default="",
        help_text="PIX copy-and-paste code",
    )
    pix_qr_code_base64 = models.TextField(
        blank=True,
        default="",
        help_text="PIX QR code image (base64 PNG)",
    )
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the PIX charge expires",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"
        indexes = [
            models.Index(fields=["tenant", "client"], name="payment_rec_tenant_client_idx"),
            models.Index(
                fields=["fulfillment_status", "fulfillment_started_at"],
                name="payment_rec_fulfillment_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "external_payment_id"],
                name="payment_record_unique_external_id_per_tenant",
            ),
            models.CheckConstraint(
                condition=models.Q(price_amount__gt=0),
                name="payment_record_price_positive",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(new_due_date__isnull=True)
                    | models.Q(fulfillment_status=FulfillmentStatus.DONE)
                ),
                name="payment_record_due_date_only_when_done",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"PaymentRecord({self.external_payment_id}, "
            f"{self.approval_status}/{self.fulfillment_status})"
        )

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    @property
    def is_payment_failed(self) -> bool:
        return self.approval_status in ApprovalStatus.terminal_negative()

    @property
    def months_remaining(self) -> int:
        """Months still owed at the panel for this payment."""
        return max(period_to_months(self.period) - self.months_applied, 0)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=fulfillment_status,
        source=FulfillmentStatus.PROCESSING,
        target=FulfillmentStatus.DONE,
    )
    def complete(self, new_due_date):
        """
        Record a successful renewal.

        Transition: PROCESSING -> DONE
        """
        self.new_due_date = new_due_date
        self.fulfilled_at = timezone.now()
        self.fulfillment_error = None

    @transition(
        field=fulfillment_status,
        source=FulfillmentStatus.PROCESSING,
        target=FulfillmentStatus.ERROR,
    )
    def fail(self, safe_message: str, months_applied: int = 0):
        """
        Record a failed renewal. Terminal until an operator requeues it.

        Transition: PROCESSING -> ERROR

        Args:
            safe_message: Text that may be shown to the client; never
                upstream response bodies
            months_applied: Months the panel added before the failure
                (multi-call renewals only)
        """
        self.fulfillment_error = safe_message[:255]
        self.months_applied += months_applied

    @transition(
        field=fulfillment_status,
        source=FulfillmentStatus.ERROR,
        target=FulfillmentStatus.PENDING,
    )
    def requeue(self):
        """
        Make a failed renewal eligible for another attempt.

        Transition: ERROR -> PENDING

        Operators run this from the admin after fixing the cause (panel
        credentials, missing client linkage). The next webhook or poll
        acquires the lock again and renews only months_remaining.
        """
        self.fulfillment_error = None
        self.fulfillment_started_at = None

"""
DRF serializers for the client portal payment endpoints.

Related files:
    - views.py: PaymentStatusView, CreatePaymentView
    - services/: FulfillmentOrchestrator, CheckoutService

Usage:
    serializer = PaymentStatusRequestSerializer(data=request.data)
    serializer.is_valid()
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from payments.models import PaymentRecord
from payments.state_machines import ApprovalStatus, FulfillmentPhase, RenewalPeriod


class PaymentStatusRequestSerializer(serializers.Serializer):
    """Body of POST portal/payment-status/."""

    session_token = serializers.CharField(max_length=128, trim_whitespace=True)
    payment_id = serializers.CharField(max_length=64, trim_whitespace=True)


class PaymentStatusResponseSerializer(serializers.Serializer):
    """
    Portal view of a payment.

    Fields:
        ok: Always true for a 200 response
        status: Approval status of the payment
        phase: Where the renewal stands; payment_failed when MercadoPago
            rejected, cancelled, refunded or charged back the payment
        new_due_date: New subscription expiry (phase done only)
        error: Client-safe message (phase error only)
    """

    ok = serializers.BooleanField()
    status = serializers.ChoiceField(choices=ApprovalStatus.choices)
    phase = serializers.ChoiceField(choices=FulfillmentPhase.choices)
    new_due_date = serializers.DateTimeField(required=False)
    error = serializers.CharField(required=False)


class CreatePaymentRequestSerializer(serializers.Serializer):
    """Body of POST portal/payments/."""

    session_token = serializers.CharField(max_length=128, trim_whitespace=True)
    client_id = serializers.UUIDField()
    period = serializers.ChoiceField(choices=RenewalPeriod.choices)
    price_amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )


class PixPaymentSerializer(serializers.ModelSerializer):
    """PIX charge data returned to the portal after checkout."""

    payment_id = serializers.CharField(source="external_payment_id", read_only=True)
    status = serializers.CharField(source="approval_status", read_only=True)

    class Meta:
        model = PaymentRecord
        fields = [
            "payment_id",
            "status",
            "period",
            "plan_label",
            "price_amount",
            "price_currency",
            "pix_qr_code",
            "pix_qr_code_base64",
            "expires_at",
        ]
        read_only_fields = fields

"""
PIX checkout for the client portal.

Creates a MercadoPago PIX charge for a subscriber's renewal and opens the
PaymentRecord that the webhook and poll paths later fulfill. Gateways are
tried in priority order; the first that accepts the charge wins.

Usage:
    service = CheckoutService.build_default()
    result = service.create_pix_payment(
        identity,
        CheckoutRequest(client_id=client.id, period="MONTHLY", price_amount=Decimal("35.00")),
    )
    if result.success:
        record = result.data
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

import requests
from django.conf import settings
from django.db import IntegrityError
from django.urls import reverse
from django.utils import timezone

from clients.models import Client
from core.services import BaseService, ServiceResult
from payments.adapters import CreatePixPaymentParams, MercadoPagoAdapter
from payments.exceptions import MercadoPagoError
from payments.models import PaymentRecord
from payments.state_machines import ApprovalStatus, RenewalPeriod

if TYPE_CHECKING:
    from clients.services import PortalIdentity
    from payments.protocols import CredentialsRepository


@dataclass(frozen=True)
class CheckoutRequest:
    """Validated portal checkout input."""

    client_id: uuid.UUID
    period: str
    price_amount: Decimal


def split_name(display_name: str) -> tuple[str, str]:
    """First name and the rest; MercadoPago wants both non-empty."""
    parts = (display_name or "").split()
    if not parts:
        return "Cliente", "Cliente"
    return parts[0], " ".join(parts[1:]) or "Cliente"


class CheckoutService(BaseService):
    """Creates PIX charges and opens their payment records."""

    def __init__(self, credentials: CredentialsRepository, adapter: MercadoPagoAdapter):
        self.credentials = credentials
        self.adapter = adapter

    @classmethod
    def build_default(cls) -> CheckoutService:
        from payments.repositories import DjangoCredentialsRepository

        return cls(
            credentials=DjangoCredentialsRepository(),
            adapter=MercadoPagoAdapter(http=requests.Session()),
        )

    def create_pix_payment(
        self,
        identity: PortalIdentity,
        request: CheckoutRequest,
    ) -> ServiceResult[PaymentRecord]:
        """
        Create a PIX charge for one of the subscriber's accounts.

        Returns:
            ServiceResult with the new PaymentRecord, or a failure with
            CLIENT_NOT_FOUND, VALIDATION_ERROR, GATEWAY_NOT_CONFIGURED or
            PAYMENT_PROVIDER_ERROR
        """
        logger = self.get_logger()

        if request.period not in RenewalPeriod.values:
            return ServiceResult.failure(
                "Invalid period",
                error_code="VALIDATION_ERROR",
                errors={"period": [f"Must be one of {', '.join(RenewalPeriod.values)}."]},
            )
        if request.price_amount <= 0:
            return ServiceResult.failure(
                "Invalid amount",
                error_code="VALIDATION_ERROR",
                errors={"price_amount": ["Must be greater than zero."]},
            )

        client = (
            Client.objects.select_related("tenant", "integration")
            .filter(
                pk=request.client_id,
                tenant_id=identity.tenant_id,
                whatsapp_username=identity.whatsapp_username,
            )
            .first()
        )
        if client is None:
            return ServiceResult.failure("Client not found", error_code="CLIENT_NOT_FOUND")

        gateways = self.credentials.get_active_gateways(identity.tenant_id)
        if not gateways:
            logger.warning(
                "Checkout without an active payment gateway",
                extra={"tenant_id": str(identity.tenant_id)},
            )
            return ServiceResult.failure(
                "No payment method is available",
                error_code="GATEWAY_NOT_CONFIGURED",
            )

        plan_label = RenewalPeriod(request.period).label
        currency = client.price_currency or settings.DEFAULT_PRICE_CURRENCY
        expires_at = timezone.now() + timedelta(minutes=settings.PIX_EXPIRATION_MINUTES)
        display_name = client.display_name or "Cliente"
        first_name, last_name = split_name(display_name)
        server_name = client.integration.name if client.integration else ""
        description = f"{display_name} - {plan_label}" + (f" - {server_name}" if server_name else "")

        for gateway in gateways:
            params = CreatePixPaymentParams(
                amount=request.price_amount,
                description=description[:255],
                payer_email=f"{self._payer_local_part(client)}@{settings.PIX_PAYER_EMAIL_DOMAIN}",
                payer_first_name=first_name,
                payer_last_name=last_name,
                notification_url=self._notification_url(client.tenant.slug),
                idempotency_key=f"{client.pk}-{request.period}-{uuid.uuid4().hex}",
                expires_at=expires_at,
                metadata={
                    "client_id": str(client.pk),
                    "tenant_id": str(identity.tenant_id),
                    "gateway_id": str(gateway.pk),
                    "period": request.period,
                    "plan_label": plan_label,
                    "price_amount": str(request.price_amount),
                },
            )
            try:
                charge = self.adapter.create_pix_payment(gateway.access_token, params)
            except MercadoPagoError as e:
                logger.warning(
                    "PIX creation failed, trying next gateway",
                    extra={"gateway_id": str(gateway.pk), "error_code": e.error_code},
                )
                continue

            try:
                with self.atomic():
                    record = PaymentRecord.objects.create(
                        tenant_id=identity.tenant_id,
                        client=client,
                        gateway=gateway,
                        external_payment_id=charge.id,
                        period=request.period,
                        plan_label=plan_label,
                        price_amount=request.price_amount,
                        price_currency=currency,
                        approval_status=ApprovalStatus.PENDING,
                        pix_qr_code=charge.qr_code,
                        pix_qr_code_base64=charge.qr_code_base64,
                        expires_at=expires_at,
                    )
            except IntegrityError:
                logger.exception(
                    "Payment record for new charge already exists",
                    extra={"external_payment_id": charge.id, "gateway_id": str(gateway.pk)},
                )
                return ServiceResult.failure(
                    "Could not create the payment. Please try again later.",
                    error_code="PAYMENT_CONFLICT",
                )

            logger.info(
                "PIX payment created",
                extra={
                    "payment_record_id": str(record.pk),
                    "external_payment_id": record.external_payment_id,
                    "gateway_id": str(gateway.pk),
                },
            )
            return ServiceResult.success(record)

        return ServiceResult.failure(
            "Could not create the payment. Please try again later.",
            error_code="PAYMENT_PROVIDER_ERROR",
        )

    @staticmethod
    def _payer_local_part(client: Client) -> str:
        digits = "".join(ch for ch in client.whatsapp_username if ch.isdigit())
        return digits or str(client.pk)

    @staticmethod
    def _notification_url(tenant_slug: str) -> str:
        path = reverse("payments:mercadopago-webhook", kwargs={"tenant_slug": tenant_slug})
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}{path}"

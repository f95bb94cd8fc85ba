"""
Tests for CheckoutService.

Tests cover:
- PIX charge creation and the opened PaymentRecord
- Input validation and client ownership
- Gateway fallback in priority order
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from clients.services import PortalIdentity
from clients.tests.factories import ClientFactory
from payments.adapters import PixPaymentResult
from payments.exceptions import MercadoPagoError, MercadoPagoUnavailableError
from payments.models import PaymentRecord
from payments.repositories import DjangoCredentialsRepository
from payments.services import CheckoutRequest, CheckoutService
from payments.services.checkout import split_name
from payments.state_machines import ApprovalStatus, FulfillmentStatus, RenewalPeriod
from payments.tests.factories import PaymentGatewayFactory, PaymentRecordFactory


@pytest.fixture
def pix_adapter():
    """Adapter mock that accepts every charge."""
    mock = MagicMock()
    mock.create_pix_payment.return_value = PixPaymentResult(
        id="555000111",
        status="pending",
        qr_code="00020126580014br.gov.bcb.pix",
        qr_code_base64="iVBORw0KGgo=",
    )
    return mock


@pytest.fixture
def checkout(pix_adapter):
    return CheckoutService(credentials=DjangoCredentialsRepository(), adapter=pix_adapter)


def monthly(subscriber, **overrides):
    fields = {
        "client_id": subscriber.pk,
        "period": RenewalPeriod.MONTHLY,
        "price_amount": Decimal("35.00"),
    }
    fields.update(overrides)
    return CheckoutRequest(**fields)


@pytest.mark.django_db
class TestCreatePixPayment:
    """Tests for CheckoutService.create_pix_payment."""

    def test_creates_record(self, checkout, pix_adapter, identity, subscriber, gateway):
        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.success is True
        record = result.data
        assert record.external_payment_id == "555000111"
        assert record.client_id == subscriber.pk
        assert record.tenant_id == subscriber.tenant_id
        assert record.gateway_id == gateway.pk
        assert record.approval_status == ApprovalStatus.PENDING
        assert record.fulfillment_status == FulfillmentStatus.NONE
        assert record.plan_label == "Monthly"
        assert record.price_currency == "BRL"
        assert record.pix_qr_code == "00020126580014br.gov.bcb.pix"
        assert record.expires_at is not None
        assert PaymentRecord.objects.filter(pk=record.pk).exists()

    def test_charge_parameters(self, checkout, pix_adapter, identity, subscriber, gateway, settings):
        settings.PUBLIC_BASE_URL = "https://renew.example.com/"
        settings.PIX_PAYER_EMAIL_DOMAIN = "payers.example.com"

        checkout.create_pix_payment(
            identity,
            monthly(subscriber, period=RenewalPeriod.QUARTERLY),
        )

        access_token, params = pix_adapter.create_pix_payment.call_args[0]
        assert access_token == gateway.access_token
        assert params.amount == Decimal("35.00")
        assert params.payer_email == "5511999990000@payers.example.com"
        assert params.payer_first_name == "Maria"
        assert params.payer_last_name == "Silva"
        assert params.notification_url == (
            "https://renew.example.com/api/v1/payments/webhooks/mercadopago/acme-tv/"
        )
        assert params.description.startswith("Maria Silva - Quarterly")
        assert params.metadata["period"] == "QUARTERLY"
        assert params.metadata["plan_label"] == "Quarterly"
        assert params.metadata["client_id"] == str(subscriber.pk)
        assert params.idempotency_key.startswith(f"{subscriber.pk}-QUARTERLY-")

    def test_idempotency_key_unique_per_attempt(self, checkout, pix_adapter, identity, subscriber, gateway):
        checkout.create_pix_payment(identity, monthly(subscriber))
        pix_adapter.create_pix_payment.return_value = PixPaymentResult(id="555000222", status="pending")
        checkout.create_pix_payment(identity, monthly(subscriber))

        keys = {call[0][1].idempotency_key for call in pix_adapter.create_pix_payment.call_args_list}
        assert len(keys) == 2

    def test_client_of_other_subscriber(self, checkout, pix_adapter, identity, tenant, gateway):
        other = ClientFactory(tenant=tenant, whatsapp_username="5511777776666")

        result = checkout.create_pix_payment(identity, monthly(other))

        assert result.success is False
        assert result.error_code == "CLIENT_NOT_FOUND"
        pix_adapter.create_pix_payment.assert_not_called()

    def test_invalid_period(self, checkout, identity, subscriber, gateway):
        result = checkout.create_pix_payment(identity, monthly(subscriber, period="WEEKLY"))

        assert result.error_code == "VALIDATION_ERROR"
        assert "period" in result.errors

    def test_non_positive_amount(self, checkout, identity, subscriber, gateway):
        result = checkout.create_pix_payment(
            identity,
            monthly(subscriber, price_amount=Decimal("0")),
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert "price_amount" in result.errors

    def test_no_gateway(self, checkout, pix_adapter, identity, subscriber):
        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.error_code == "GATEWAY_NOT_CONFIGURED"
        pix_adapter.create_pix_payment.assert_not_called()

    def test_falls_back_to_next_gateway(self, checkout, pix_adapter, identity, subscriber, gateway):
        backup = PaymentGatewayFactory(tenant=subscriber.tenant, access_token="APP_USR-backup", priority=1)
        pix_adapter.create_pix_payment.side_effect = [
            MercadoPagoUnavailableError("MercadoPago is unavailable", status_code=503),
            PixPaymentResult(id="555000333", status="pending"),
        ]

        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.success is True
        assert result.data.gateway_id == backup.pk
        tokens = [call[0][0] for call in pix_adapter.create_pix_payment.call_args_list]
        assert tokens == ["APP_USR-acme", "APP_USR-backup"]

    def test_all_gateways_fail(self, checkout, pix_adapter, identity, subscriber, gateway):
        pix_adapter.create_pix_payment.side_effect = MercadoPagoError(
            "MercadoPago request failed",
            status_code=400,
            details={"body": '{"message":"invalid payer"}'},
        )

        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.error_code == "PAYMENT_PROVIDER_ERROR"
        assert "invalid payer" not in result.error
        assert not PaymentRecord.objects.exists()

    def test_duplicate_payment_id(self, checkout, identity, subscriber, gateway):
        PaymentRecordFactory(
            tenant=subscriber.tenant,
            client=subscriber,
            gateway=gateway,
            external_payment_id="555000111",
        )

        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.error_code == "PAYMENT_CONFLICT"

    def test_session_of_other_tenant(self, checkout, subscriber, gateway):
        identity = PortalIdentity(
            tenant_id=ClientFactory().tenant_id,
            whatsapp_username=subscriber.whatsapp_username,
        )

        result = checkout.create_pix_payment(identity, monthly(subscriber))

        assert result.error_code == "CLIENT_NOT_FOUND"


class TestSplitName:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Maria Silva Santos", ("Maria", "Silva Santos")),
            ("Maria", ("Maria", "Cliente")),
            ("", ("Cliente", "Cliente")),
        ],
    )
    def test_split_name(self, name, expected):
        assert split_name(name) == expected

"""
Tests for MercadoPagoAdapter.

Tests cover:
- Payment status lookup
- PIX charge creation request and response mapping
- HTTP and network error translation
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from payments.adapters import CreatePixPaymentParams, MercadoPagoAdapter
from payments.exceptions import (
    MercadoPagoAuthenticationError,
    MercadoPagoError,
    MercadoPagoUnavailableError,
)

BASE_URL = "https://api.mercadopago.example"


def make_response(status_code: int = 200, json_data=None, text: str = ""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def adapter(http):
    return MercadoPagoAdapter(http=http, base_url=f"{BASE_URL}/", timeout=5)


@pytest.fixture
def pix_params():
    return CreatePixPaymentParams(
        amount=Decimal("35.00"),
        description="Maria Silva - Monthly",
        payer_email="5511999990000@payers.example.com",
        payer_first_name="Maria",
        payer_last_name="Silva",
        notification_url="https://renew.example.com/api/v1/payments/webhooks/mercadopago/acme-tv/",
        idempotency_key="client-MONTHLY-abc",
        expires_at=datetime(2026, 10, 18, 12, 30, tzinfo=dt_timezone.utc),
        metadata={"period": "MONTHLY"},
    )


# =============================================================================
# Payment Lookup
# =============================================================================


class TestGetPayment:
    """Tests for get_payment and get_payment_status."""

    def test_returns_status(self, adapter, http):
        http.request.return_value = make_response(
            json_data={"id": 1234567890, "status": "approved", "status_detail": "accredited"}
        )

        payment = adapter.get_payment("APP_USR-acme", "1234567890")

        assert payment.id == "1234567890"
        assert payment.status == "approved"
        assert payment.status_detail == "accredited"
        method, url = http.request.call_args[0]
        kwargs = http.request.call_args[1]
        assert method == "GET"
        assert url == f"{BASE_URL}/v1/payments/1234567890"
        assert kwargs["headers"]["Authorization"] == "Bearer APP_USR-acme"
        assert kwargs["timeout"] == 5

    def test_status_shortcut(self, adapter, http):
        http.request.return_value = make_response(json_data={"id": 1, "status": "in_process"})

        assert adapter.get_payment_status("token", "1") == "in_process"

    def test_missing_status(self, adapter, http):
        http.request.return_value = make_response(json_data={"id": 1})

        with pytest.raises(MercadoPagoError):
            adapter.get_payment("token", "1")


# =============================================================================
# PIX Creation
# =============================================================================


class TestCreatePixPayment:
    """Tests for create_pix_payment."""

    def test_creates_charge(self, adapter, http, pix_params):
        http.request.return_value = make_response(
            status_code=201,
            json_data={
                "id": 555000111,
                "status": "pending",
                "point_of_interaction": {
                    "transaction_data": {
                        "qr_code": "00020126580014br.gov.bcb.pix",
                        "qr_code_base64": "iVBORw0KGgo=",
                    }
                },
            },
        )

        result = adapter.create_pix_payment("APP_USR-acme", pix_params)

        assert result.id == "555000111"
        assert result.status == "pending"
        assert result.qr_code == "00020126580014br.gov.bcb.pix"
        assert result.qr_code_base64 == "iVBORw0KGgo="

        method, url = http.request.call_args[0]
        kwargs = http.request.call_args[1]
        assert method == "POST"
        assert url == f"{BASE_URL}/v1/payments"
        assert kwargs["headers"]["X-Idempotency-Key"] == "client-MONTHLY-abc"
        body = kwargs["json"]
        assert body["transaction_amount"] == 35.0
        assert body["payment_method_id"] == "pix"
        assert body["payer"]["email"] == "5511999990000@payers.example.com"
        assert body["notification_url"].endswith("/mercadopago/acme-tv/")
        assert body["date_of_expiration"] == "2026-10-18T12:30:00.000+00:00"

    def test_missing_qr_data(self, adapter, http, pix_params):
        http.request.return_value = make_response(json_data={"id": 1, "status": "pending"})

        result = adapter.create_pix_payment("token", pix_params)

        assert result.qr_code == ""
        assert result.qr_code_base64 == ""

    def test_missing_payment_id(self, adapter, http, pix_params):
        http.request.return_value = make_response(json_data={"status": "pending"})

        with pytest.raises(MercadoPagoError):
            adapter.create_pix_payment("token", pix_params)

    def test_params_validation(self):
        with pytest.raises(ValueError):
            CreatePixPaymentParams(
                amount=Decimal("0"),
                description="x",
                payer_email="a@b.c",
                idempotency_key="k",
                expires_at=datetime(2026, 1, 1, tzinfo=dt_timezone.utc),
            )


# =============================================================================
# Error Translation
# =============================================================================


class TestErrorTranslation:
    """HTTP and network failures become MercadoPagoError subclasses."""

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_errors(self, adapter, http, status_code):
        http.request.return_value = make_response(status_code=status_code, text="unauthorized")

        with pytest.raises(MercadoPagoAuthenticationError) as exc_info:
            adapter.get_payment("bad-token", "1")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.is_retryable is False

    @pytest.mark.parametrize("status_code", [429, 500, 503])
    def test_unavailable(self, adapter, http, status_code):
        http.request.return_value = make_response(status_code=status_code, text="busy")

        with pytest.raises(MercadoPagoUnavailableError) as exc_info:
            adapter.get_payment("token", "1")

        assert exc_info.value.is_retryable is True

    def test_not_found(self, adapter, http):
        http.request.return_value = make_response(status_code=404, text='{"message":"not found"}')

        with pytest.raises(MercadoPagoError) as exc_info:
            adapter.get_payment("token", "1")

        assert not isinstance(exc_info.value, MercadoPagoUnavailableError)
        assert "not found" not in exc_info.value.message

    def test_timeout(self, adapter, http):
        http.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(MercadoPagoUnavailableError):
            adapter.get_payment("token", "1")

    def test_connection_error(self, adapter, http):
        http.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(MercadoPagoUnavailableError):
            adapter.get_payment("token", "1")

    def test_invalid_json(self, adapter, http):
        http.request.return_value = make_response(json_data=ValueError("bad json"))

        with pytest.raises(MercadoPagoError):
            adapter.get_payment("token", "1")

    def test_non_object_json(self, adapter, http):
        http.request.return_value = make_response(json_data=["unexpected"])

        with pytest.raises(MercadoPagoError):
            adapter.get_payment("token", "1")

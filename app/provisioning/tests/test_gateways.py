"""
Tests for reseller panel gateways.

Tests cover:
- NATV and FAST token renewals and credit lookups
- ELITE login, CSRF handling and multi-month renewals
- Expiry parsing
- Gateway selection
"""

from datetime import datetime, timezone as dt_timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
import requests

from provisioning.exceptions import (
    ProvisioningConfigurationError,
    ProvisioningError,
    ProvisioningRateLimitError,
    ProvisioningRejectedError,
    ProvisioningTimeoutError,
)
from provisioning.gateways import (
    EliteGateway,
    FastGateway,
    NatvGateway,
    get_gateway,
    list_providers,
)
from provisioning.gateways.base import BaseGateway
from provisioning.gateways.session import extract_csrf_token
from provisioning.models import ProviderIntegration, ProviderKind

EXPIRY_TS = 1796137200  # 2026-12-01T15:00:00Z


def make_response(status_code: int = 200, json_data=None, text: str = "", url: str = ""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    response.url = url
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def http():
    return MagicMock()


# =============================================================================
# Expiry Parsing
# =============================================================================


class TestParseExpiry:
    """Tests for BaseGateway.parse_expiry."""

    def test_unix_seconds(self):
        assert BaseGateway.parse_expiry(EXPIRY_TS) == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)

    def test_unix_milliseconds(self):
        assert BaseGateway.parse_expiry(EXPIRY_TS * 1000) == datetime(
            2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc
        )

    def test_numeric_string(self):
        assert BaseGateway.parse_expiry(str(EXPIRY_TS)).year == 2026

    def test_iso_with_offset(self):
        parsed = BaseGateway.parse_expiry("2026-12-01T15:00:00+00:00")

        assert parsed == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)

    def test_naive_uses_portal_timezone(self, settings):
        settings.PORTAL_TIMEZONE = "America/Sao_Paulo"

        parsed = BaseGateway.parse_expiry("2026-12-01 23:59:59")

        assert parsed == datetime(2026, 12, 1, 23, 59, 59, tzinfo=ZoneInfo("America/Sao_Paulo"))

    @pytest.mark.parametrize("value", [None, "", "soon", 0, -5, True, [1]])
    def test_rejects_unusable_values(self, value):
        with pytest.raises(ValueError):
            BaseGateway.parse_expiry(value)


# =============================================================================
# NATV
# =============================================================================


@pytest.fixture
def natv_integration():
    return ProviderIntegration(
        provider=ProviderKind.NATV,
        base_url="https://natv.example.com/",
        api_token=" natv-token ",
    )


class TestNatvGateway:
    """Tests for NatvGateway."""

    def test_renew(self, http, natv_integration):
        http.request.return_value = make_response(json_data={"exp_date": EXPIRY_TS, "password": "n3w"})
        gateway = NatvGateway(http=http, timeout=5)

        result = gateway.renew(natv_integration, "joao123", 3)

        assert result.new_expiry == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)
        assert result.rotated_password == "n3w"
        method, url = http.request.call_args[0]
        kwargs = http.request.call_args[1]
        assert method == "POST"
        assert url == "https://natv.example.com/user/activation"
        assert kwargs["json"] == {"username": "joao123", "months": 3}
        assert kwargs["headers"]["Authorization"] == "Bearer natv-token"
        assert kwargs["timeout"] == 5

    def test_renew_without_password(self, http, natv_integration):
        http.request.return_value = make_response(json_data={"exp_date": EXPIRY_TS})

        result = NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

        assert result.rotated_password is None

    def test_insufficient_credits(self, http, natv_integration):
        http.request.return_value = make_response(status_code=402, text="no credits")

        with pytest.raises(ProvisioningRejectedError) as exc_info:
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

        assert exc_info.value.error_code == "INSUFFICIENT_CREDITS"
        assert "no credits" not in exc_info.value.safe_message

    def test_unknown_user(self, http, natv_integration):
        http.request.return_value = make_response(status_code=404)

        with pytest.raises(ProvisioningRejectedError) as exc_info:
            NatvGateway(http=http, timeout=5).renew(natv_integration, "ghost", 1)

        assert exc_info.value.error_code == "PANEL_USER_NOT_FOUND"

    def test_server_error(self, http, natv_integration):
        http.request.return_value = make_response(status_code=500, text="Internal Server Error")

        with pytest.raises(ProvisioningError) as exc_info:
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

        assert exc_info.value.safe_message == ProvisioningError.default_safe_message

    def test_missing_expiry(self, http, natv_integration):
        http.request.return_value = make_response(json_data={"ok": True})

        with pytest.raises(ProvisioningError):
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

    def test_timeout(self, http, natv_integration):
        http.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(ProvisioningTimeoutError):
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

        assert http.request.call_count == 1

    def test_connection_error(self, http, natv_integration):
        http.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ProvisioningError):
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

    def test_missing_token(self, http, natv_integration):
        natv_integration.api_token = ""

        with pytest.raises(ProvisioningConfigurationError):
            NatvGateway(http=http, timeout=5).renew(natv_integration, "joao123", 1)

        http.request.assert_not_called()

    def test_fetch_credits(self, http, natv_integration):
        http.request.side_effect = [
            make_response(json_data={"ok": True}),
            make_response(json_data=[{"username": "joao123", "owner": {"username": "acme", "credits": "42"}}]),
        ]

        snapshot = NatvGateway(http=http, timeout=5).fetch_credits(natv_integration)

        assert snapshot.credits == 42
        assert snapshot.owner_username == "acme"

    def test_fetch_credits_without_users(self, http, natv_integration):
        http.request.side_effect = [
            make_response(json_data={"ok": True}),
            make_response(json_data={"data": []}),
        ]

        snapshot = NatvGateway(http=http, timeout=5).fetch_credits(natv_integration)

        assert snapshot.credits is None

    def test_fetch_credits_bad_token(self, http, natv_integration):
        http.request.return_value = make_response(status_code=401)

        with pytest.raises(ProvisioningError):
            NatvGateway(http=http, timeout=5).fetch_credits(natv_integration)


# =============================================================================
# FAST
# =============================================================================


@pytest.fixture
def fast_integration():
    return ProviderIntegration(
        provider=ProviderKind.FAST,
        base_url="https://fast.example.com",
        api_token="tok/en",
        api_secret="s3cret",
    )


class TestFastGateway:
    """Tests for FastGateway."""

    def test_renew(self, http, fast_integration):
        http.request.return_value = make_response(
            json_data={"result": True, "data": {"exp_date": "2026-12-01T15:00:00Z"}}
        )

        result = FastGateway(http=http, timeout=5).renew(fast_integration, "joao123", 2)

        assert result.new_expiry == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)
        assert result.rotated_password is None
        method, url = http.request.call_args[0]
        kwargs = http.request.call_args[1]
        assert url == "https://fast.example.com/renew_client/tok%2Fen"
        assert kwargs["json"] == {"secret": "s3cret", "username": "joao123", "month": 2}

    def test_refused(self, http, fast_integration):
        http.request.return_value = make_response(json_data={"result": False, "mens": "Sem créditos"})

        with pytest.raises(ProvisioningRejectedError) as exc_info:
            FastGateway(http=http, timeout=5).renew(fast_integration, "joao123", 1)

        assert "Sem créditos" not in exc_info.value.safe_message

    def test_rate_limited(self, http, fast_integration):
        http.request.return_value = make_response(status_code=429)

        with pytest.raises(ProvisioningRateLimitError):
            FastGateway(http=http, timeout=5).renew(fast_integration, "joao123", 1)

    def test_missing_secret(self, http, fast_integration):
        fast_integration.api_secret = ""

        with pytest.raises(ProvisioningConfigurationError):
            FastGateway(http=http, timeout=5).renew(fast_integration, "joao123", 1)

    def test_fetch_credits(self, http, fast_integration):
        http.request.return_value = make_response(
            json_data={"result": True, "data": {"username": "acme", "credits": 17}}
        )

        snapshot = FastGateway(http=http, timeout=5).fetch_credits(fast_integration)

        assert snapshot.credits == 17
        assert snapshot.owner_username == "acme"


# =============================================================================
# ELITE
# =============================================================================

LOGIN_PAGE = """
<html><head><meta name="csrf-token" content="login-csrf"></head>
<body><form><input type="hidden" name="_token" value="login-csrf"></form></body></html>
"""
DASHBOARD_PAGE = '<html><head><meta name="csrf-token" content="dash-csrf"></head></html>'


@pytest.fixture
def elite_integration():
    return ProviderIntegration(
        provider=ProviderKind.ELITE,
        base_url="https://elite.example.com",
        api_token="reseller@example.com",
        api_secret="panel-pass",
    )


@pytest.fixture
def panel_session():
    return MagicMock()


@pytest.fixture
def elite(panel_session):
    return EliteGateway(timeout=5, session_factory=lambda: panel_session)


def login_responses():
    return [
        make_response(text=LOGIN_PAGE),
        make_response(text="<html>dashboard</html>", url="https://elite.example.com/dashboard"),
        make_response(text=DASHBOARD_PAGE),
    ]


class TestCsrfExtraction:
    """Tests for extract_csrf_token."""

    def test_prefers_meta_tag(self):
        html = '<meta name="csrf-token" content="meta"><input name="_token" value="form">'

        assert extract_csrf_token(html) == "meta"

    def test_falls_back_to_form_input(self):
        assert extract_csrf_token('<input type="hidden" name="_token" value="form">') == "form"

    def test_absent(self):
        assert extract_csrf_token("<html></html>") == ""
        assert extract_csrf_token("") == ""


class TestEliteGateway:
    """Tests for EliteGateway."""

    def test_renew_one_month(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses() + [
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS, "password": "p4ss"}),
        ]

        result = elite.renew(elite_integration, "joao 123", 1)

        assert result.new_expiry == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)
        assert result.rotated_password == "p4ss"
        assert panel_session.request.call_count == 4

        login_call = panel_session.request.call_args_list[1]
        assert login_call[0] == ("POST", "https://elite.example.com/login")
        assert login_call[1]["data"]["_token"] == "login-csrf"
        assert login_call[1]["data"]["email"] == "reseller@example.com"

        renew_call = panel_session.request.call_args_list[3]
        assert renew_call[0] == ("POST", "https://elite.example.com/api/iptv/renewone/joao%20123")
        assert renew_call[1]["headers"]["x-csrf-token"] == "dash-csrf"
        assert renew_call[1]["headers"]["x-requested-with"] == "XMLHttpRequest"
        panel_session.close.assert_called_once()

    def test_renew_repeats_per_month(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses() + [
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS - 1}),
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS - 2}),
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS}),
        ]

        result = elite.renew(elite_integration, "joao123", 3)

        assert panel_session.request.call_count == 6
        assert result.new_expiry == datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)

    def test_login_rejected(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = [
            make_response(text=LOGIN_PAGE),
            make_response(text="<html>login</html>", url="https://elite.example.com/login"),
        ]

        with pytest.raises(ProvisioningRejectedError) as exc_info:
            elite.renew(elite_integration, "joao123", 1)

        assert exc_info.value.error_code == "PANEL_LOGIN_FAILED"
        assert exc_info.value.months_applied == 0
        panel_session.close.assert_called_once()

    def test_login_page_without_token(self, elite, panel_session, elite_integration):
        panel_session.request.return_value = make_response(text="<html></html>")

        with pytest.raises(ProvisioningError):
            elite.renew(elite_integration, "joao123", 1)

    def test_renewal_refused_midway(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses() + [
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS}),
            make_response(json_data={"success": False, "message": "Sem créditos"}),
        ]

        with pytest.raises(ProvisioningRejectedError) as exc_info:
            elite.renew(elite_integration, "joao123", 2)

        assert exc_info.value.months_applied == 1
        assert exc_info.value.details["months_applied"] == 1
        assert exc_info.value.details["panel_message"] == "Sem créditos"

    def test_timeout_midway_reports_applied_months(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses() + [
            make_response(json_data={"success": True, "new_exp_timestamp": EXPIRY_TS}),
            requests.exceptions.Timeout("read timed out"),
        ]

        with pytest.raises(ProvisioningTimeoutError) as exc_info:
            elite.renew(elite_integration, "user1", 3)

        assert exc_info.value.months_applied == 1
        panel_session.close.assert_called_once()

    def test_missing_expiry_after_all_months(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses() + [
            make_response(json_data={"success": True}),
            make_response(json_data={"success": True}),
        ]

        with pytest.raises(ProvisioningError) as exc_info:
            elite.renew(elite_integration, "joao123", 2)

        assert exc_info.value.months_applied == 2

    def test_requires_base_url(self, elite, panel_session, elite_integration):
        elite_integration.base_url = ""

        with pytest.raises(ProvisioningConfigurationError):
            elite.renew(elite_integration, "joao123", 1)

        panel_session.request.assert_not_called()

    def test_fetch_credits_checks_login(self, elite, panel_session, elite_integration):
        panel_session.request.side_effect = login_responses()

        snapshot = elite.fetch_credits(elite_integration)

        assert snapshot.credits is None
        assert snapshot.owner_username == "reseller@example.com"


# =============================================================================
# Gateway Selection
# =============================================================================


class TestGetGateway:
    """Tests for get_gateway."""

    @pytest.mark.parametrize(
        "provider,gateway_class",
        [("NATV", NatvGateway), ("fast", FastGateway), ("ELITE", EliteGateway)],
    )
    def test_known_providers(self, provider, gateway_class, http):
        assert isinstance(get_gateway(provider, http=http, timeout=5), gateway_class)

    def test_unknown_provider(self):
        with pytest.raises(ProvisioningConfigurationError):
            get_gateway("SIGMA")

    def test_list_providers(self):
        assert set(list_providers()) == {"NATV", "FAST", "ELITE"}

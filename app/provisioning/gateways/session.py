"""
Session-based provisioning gateway (variant B).

ELITE panels expose no token API. A renewal has to act like the panel's
own dashboard:

1. GET /login and read the CSRF token from the login form
2. POST the login form on the same cookie session
3. GET /dashboard/iptv and read the dashboard CSRF token
4. POST /api/iptv/renewone/{username} as an XHR carrying that token

renewone extends the subscriber by one month, so multi-month renewals
repeat step 4 on the same session. The response may carry a new
subscriber password, which is propagated as the rotated credential.
A failure partway through sets months_applied on the raised error so
the caller can renew only the remaining months later.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup
from django.conf import settings

from provisioning.exceptions import ProvisioningError, ProvisioningRejectedError
from provisioning.gateways.base import BaseGateway, CreditSnapshot, RenewalResult
from provisioning.models import ProviderKind

if TYPE_CHECKING:
    from provisioning.models import ProviderIntegration


BROWSER_HEADERS = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "pt-BR,pt;q=0.9,en;q=0.8",
    "cache-control": "no-cache",
    "pragma": "no-cache",
    "user-agent": "Mozilla/5.0",
}


def extract_csrf_token(html: str) -> str:
    """Return the page's CSRF token, preferring the meta tag; empty if absent."""
    soup = BeautifulSoup(html or "", "html.parser")
    meta = soup.select_one('meta[name="csrf-token"]')
    if meta is not None and (meta.get("content") or "").strip():
        return meta["content"].strip()
    field = soup.select_one('input[name="_token"]')
    if field is not None:
        return (field.get("value") or "").strip()
    return ""


class EliteGateway(BaseGateway):
    """
    ELITE reseller panel (dashboard automation).

    Credentials: api_token is the login e-mail, api_secret the password,
    base_url the panel root (required; there is no shared default).

    A fresh cookie session is created per operation through
    session_factory so concurrent renewals never share a login.
    """

    provider = ProviderKind.ELITE

    def __init__(
        self,
        http: requests.Session | None = None,
        timeout: float | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        super().__init__(http=http, timeout=timeout)
        self.session_factory = session_factory

    # =========================================================================
    # Login
    # =========================================================================

    def login(
        self,
        integration: ProviderIntegration,
        session: requests.Session,
    ) -> str:
        """
        Authenticate session against the panel.

        Returns:
            The CSRF token of the authenticated dashboard

        Raises:
            ProvisioningRejectedError: Credentials refused
            ProvisioningError: Panel unreachable or pages without a CSRF token
        """
        self.require_credentials(integration, "api_token", "api_secret")
        base = self.base_url(integration)
        login_url = f"{base}/login"
        log_context = {"provider": self.provider, "integration_id": str(integration.pk)}

        page = self._send("GET", login_url, log_context, http=session, headers=BROWSER_HEADERS)
        if not page.ok:
            raise ProvisioningError(
                f"ELITE login page returned HTTP {page.status_code}",
                details={**log_context, "status_code": page.status_code},
            )
        login_token = extract_csrf_token(page.text)
        if not login_token:
            raise ProvisioningError("ELITE login page has no CSRF token", details=log_context)

        response = self._send(
            "POST",
            login_url,
            log_context,
            http=session,
            data={
                "_token": login_token,
                "timezone": settings.PORTAL_TIMEZONE,
                "email": integration.api_token.strip(),
                "password": integration.api_secret.strip(),
            },
            headers={
                **BROWSER_HEADERS,
                "content-type": "application/x-www-form-urlencoded",
                "origin": base,
                "referer": login_url,
            },
            allow_redirects=True,
        )
        if not response.ok or "/login" in (response.url or ""):
            raise ProvisioningRejectedError(
                "ELITE login failed",
                error_code="PANEL_LOGIN_FAILED",
                details={**log_context, "status_code": response.status_code},
            )

        dashboard = self._send(
            "GET",
            f"{base}/dashboard/iptv",
            log_context,
            http=session,
            headers=BROWSER_HEADERS,
        )
        if not dashboard.ok:
            raise ProvisioningError(
                f"ELITE dashboard returned HTTP {dashboard.status_code}",
                details={**log_context, "status_code": dashboard.status_code},
            )
        return extract_csrf_token(dashboard.text) or login_token

    # =========================================================================
    # Operations
    # =========================================================================

    def renew(
        self,
        integration: ProviderIntegration,
        username: str,
        months: int,
    ) -> RenewalResult:
        log_context: dict[str, Any] = {
            "provider": self.provider,
            "integration_id": str(integration.pk),
            "username": username,
            "months": months,
        }
        session = self.session_factory()
        applied = 0
        try:
            csrf_token = self.login(integration, session)
            base = self.base_url(integration)
            renew_url = f"{base}/api/iptv/renewone/{quote(str(username), safe='')}"

            data: dict[str, Any] = {}
            for month in range(1, max(int(months), 1) + 1):
                response = self._send(
                    "POST",
                    renew_url,
                    {**log_context, "month": month},
                    http=session,
                    headers={
                        "accept": "*/*",
                        "origin": base,
                        "referer": f"{base}/dashboard/iptv",
                        "timezone": settings.PORTAL_TIMEZONE,
                        "x-csrf-token": csrf_token,
                        "x-requested-with": "XMLHttpRequest",
                        "user-agent": BROWSER_HEADERS["user-agent"],
                    },
                )
                data = self._json(response, {**log_context, "month": month})
                if not data.get("success"):
                    raise ProvisioningRejectedError(
                        "ELITE refused the renewal",
                        details={
                            **log_context,
                            "panel_message": str(data.get("message", ""))[:200],
                        },
                    )
                applied = month

            expiry = data.get("new_exp_timestamp") or data.get("new_exp_date")
            password = data.get("password") or data.get("new_password")
            return RenewalResult(
                new_expiry=self.expiry_from(expiry, log_context),
                rotated_password=str(password) if password else None,
                raw_response=data,
            )
        except ProvisioningError as e:
            e.months_applied = applied
            e.details["months_applied"] = applied
            raise
        finally:
            session.close()

    def fetch_credits(self, integration: ProviderIntegration) -> CreditSnapshot:
        """
        Check that the panel login still works.

        ELITE dashboards do not expose a credit balance; a successful
        login confirms the integration and records the login name.
        """
        session = self.session_factory()
        try:
            self.login(integration, session)
        finally:
            session.close()
        return CreditSnapshot(owner_username=integration.api_token.strip())

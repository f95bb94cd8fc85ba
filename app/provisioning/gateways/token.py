"""
Token-based provisioning gateways (variant A).

Each renewal is a single authenticated HTTP call; the response carries
the new expiry directly.

- NatvGateway: bearer token, POST /user/activation
- FastGateway: reseller token in the path plus a shared secret in the body
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from provisioning.exceptions import (
    ProvisioningError,
    ProvisioningRateLimitError,
    ProvisioningRejectedError,
)
from provisioning.gateways.base import BaseGateway, CreditSnapshot, RenewalResult
from provisioning.models import ProviderKind

if TYPE_CHECKING:
    from provisioning.models import ProviderIntegration


class NatvGateway(BaseGateway):
    """
    NATV reseller panel.

    Credentials: api_token is the reseller bearer token.

    The activation response may include a new subscriber password, which
    is propagated as the rotated credential.
    """

    provider = ProviderKind.NATV
    default_base_url = "https://revenda.pixbot.link"

    def _headers(self, integration: ProviderIntegration) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {integration.api_token.strip()}",
            "Content-Type": "application/json",
        }

    def renew(
        self,
        integration: ProviderIntegration,
        username: str,
        months: int,
    ) -> RenewalResult:
        self.require_credentials(integration, "api_token")
        log_context = {
            "provider": self.provider,
            "integration_id": str(integration.pk),
            "username": username,
            "months": months,
        }

        response = self._send(
            "POST",
            f"{self.base_url(integration)}/user/activation",
            log_context,
            json={"username": str(username), "months": int(months)},
            headers=self._headers(integration),
        )

        if response.status_code == 402:
            raise ProvisioningRejectedError(
                "NATV reports insufficient credits",
                error_code="INSUFFICIENT_CREDITS",
                details=log_context,
                safe_message="The renewal server has no credits available. Please contact support.",
            )
        if response.status_code == 404:
            raise ProvisioningRejectedError(
                "NATV does not know this username",
                error_code="PANEL_USER_NOT_FOUND",
                details=log_context,
                safe_message="Your account was not found on the renewal server. Please contact support.",
            )

        data = self._json(response, log_context)
        password = data.get("password")
        return RenewalResult(
            new_expiry=self.expiry_from(data.get("exp_date"), log_context),
            rotated_password=str(password) if password else None,
            raw_response=data,
        )

    def fetch_credits(self, integration: ProviderIntegration) -> CreditSnapshot:
        """
        Validate the token, then read the owner block of the reseller's user list.

        NATV has no profile endpoint; every user returned by /user/search
        embeds the owning reseller with its credit balance.
        """
        self.require_credentials(integration, "api_token")
        base = self.base_url(integration)
        log_context = {"provider": self.provider, "integration_id": str(integration.pk)}

        check = self._send("GET", f"{base}/test", log_context, headers=self._headers(integration))
        if not check.ok:
            raise ProvisioningError(
                f"NATV token check returned HTTP {check.status_code}",
                details={**log_context, "status_code": check.status_code},
            )

        response = self._send(
            "POST",
            f"{base}/user/search",
            log_context,
            json={},
            headers=self._headers(integration),
        )
        if not response.ok:
            raise ProvisioningError(
                f"NATV user search returned HTTP {response.status_code}",
                details={**log_context, "status_code": response.status_code},
            )
        try:
            users = response.json()
        except ValueError as e:
            raise ProvisioningError("NATV returned invalid JSON", details=log_context) from e

        if isinstance(users, dict):
            users = users.get("data") or []
        owner = _first_owner(users)
        if owner is None:
            return CreditSnapshot()
        return CreditSnapshot(
            credits=_as_int(owner.get("credits")),
            owner_username=str(owner.get("username") or ""),
        )


class FastGateway(BaseGateway):
    """
    FAST reseller panel.

    Credentials: api_token is the reseller token (part of the URL),
    api_secret is the reseller secret (sent in the body).

    Responses follow {"result": bool, "data": {...}, "mens": str}.
    """

    provider = ProviderKind.FAST
    default_base_url = "https://api.painelcliente.com"

    def renew(
        self,
        integration: ProviderIntegration,
        username: str,
        months: int,
    ) -> RenewalResult:
        self.require_credentials(integration, "api_token", "api_secret")
        log_context = {
            "provider": self.provider,
            "integration_id": str(integration.pk),
            "username": username,
            "months": months,
        }
        token = quote(integration.api_token.strip(), safe="")

        response = self._send(
            "POST",
            f"{self.base_url(integration)}/renew_client/{token}",
            log_context,
            json={
                "secret": integration.api_secret.strip(),
                "username": str(username),
                "month": int(months),
            },
        )

        if response.status_code == 429:
            raise ProvisioningRateLimitError(
                "FAST rate limited the renewal",
                details=log_context,
            )

        data = self._json(response, log_context)
        if data.get("result") is not True:
            raise ProvisioningRejectedError(
                "FAST refused the renewal",
                details={**log_context, "mens": str(data.get("mens", ""))[:200]},
            )

        payload = data.get("data") or {}
        return RenewalResult(
            new_expiry=self.expiry_from(payload.get("exp_date"), log_context),
            raw_response=data,
        )

    def fetch_credits(self, integration: ProviderIntegration) -> CreditSnapshot:
        self.require_credentials(integration, "api_token", "api_secret")
        log_context = {"provider": self.provider, "integration_id": str(integration.pk)}
        token = quote(integration.api_token.strip(), safe="")

        response = self._send(
            "POST",
            f"{self.base_url(integration)}/profile/{token}",
            log_context,
            json={"secret": integration.api_secret.strip()},
        )
        data = self._json(response, log_context)
        if data.get("result") is not True:
            raise ProvisioningRejectedError(
                "FAST rejected the token/secret pair",
                details=log_context,
            )

        profile = data.get("data") or {}
        return CreditSnapshot(
            credits=_as_int(profile.get("credits")),
            owner_username=str(profile.get("username") or ""),
        )


def _first_owner(users: Any) -> dict[str, Any] | None:
    if not isinstance(users, list) or not users:
        return None
    owner = users[0].get("owner") if isinstance(users[0], dict) else None
    return owner if isinstance(owner, dict) else None


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None

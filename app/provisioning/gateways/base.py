"""
Base provisioning gateway definitions.

Defines the interface every reseller panel gateway implements and the
shared HTTP plumbing (timeouts, error translation, expiry parsing).

Usage:
    from provisioning.gateways.base import BaseGateway, RenewalResult

    class MyPanelGateway(BaseGateway):
        provider = "MYPANEL"

        def renew(self, integration, username, months):
            response = self._send("POST", url, log_context=ctx, json={...})
            data = self._json(response, ctx)
            return RenewalResult(new_expiry=self.parse_expiry(data["exp"]))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from zoneinfo import ZoneInfo

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from provisioning.exceptions import (
    ProvisioningConfigurationError,
    ProvisioningError,
    ProvisioningTimeoutError,
)

if TYPE_CHECKING:
    from provisioning.models import ProviderIntegration


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class RenewalResult:
    """
    Outcome of a successful renewal.

    Attributes:
        new_expiry: Subscription expiry reported by the panel (aware datetime)
        rotated_password: New subscriber password if the panel changed it
        raw_response: Decoded panel response (for logs only)
    """

    new_expiry: datetime
    rotated_password: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class CreditSnapshot:
    """
    Reseller account state reported by a panel.

    Attributes:
        credits: Remaining credits, or None when the panel does not report them
        owner_username: Reseller account name on the panel
    """

    credits: int | None = None
    owner_username: str = ""


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class ProvisioningGateway(Protocol):
    """
    Protocol for reseller panel gateways.

    Required Methods:
        renew: Extend a subscriber by a number of months
        fetch_credits: Read the reseller account's credit balance

    Both raise ProvisioningError on any failure. Renewals are never
    retried by a gateway.
    """

    provider: str

    def renew(
        self,
        integration: ProviderIntegration,
        username: str,
        months: int,
    ) -> RenewalResult:
        ...

    def fetch_credits(self, integration: ProviderIntegration) -> CreditSnapshot:
        ...


# =============================================================================
# Shared Implementation
# =============================================================================


class BaseGateway:
    """
    Base implementation with shared HTTP handling.

    Attributes:
        provider: ProviderKind value served by the gateway
        default_base_url: API root used when the integration has none
        http: Injected requests session
        timeout: Per-call timeout in seconds
    """

    provider: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        http: requests.Session | None = None,
        timeout: float | None = None,
    ):
        self.http = http or requests.Session()
        self.timeout = timeout or settings.PROVISIONING_TIMEOUT_SECONDS

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this gateway."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def base_url(self, integration: ProviderIntegration) -> str:
        """API root for an integration, without trailing slash."""
        base = (integration.base_url or self.default_base_url).strip().rstrip("/")
        if not base:
            raise ProvisioningConfigurationError(
                f"{self.provider} integration {integration.pk} has no base URL",
                details={"integration_id": str(integration.pk)},
            )
        return base

    def require_credentials(self, integration: ProviderIntegration, *names: str) -> None:
        """Raise ProvisioningConfigurationError when a credential column is blank."""
        missing = [name for name in names if not (getattr(integration, name) or "").strip()]
        if missing:
            raise ProvisioningConfigurationError(
                f"{self.provider} integration {integration.pk} is missing {', '.join(missing)}",
                details={"integration_id": str(integration.pk), "missing": missing},
            )

    # =========================================================================
    # HTTP Plumbing
    # =========================================================================

    def _send(
        self,
        method: str,
        url: str,
        log_context: dict[str, Any],
        http: requests.Session | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Perform one HTTP call with the gateway timeout.

        Network failures become ProvisioningTimeoutError or
        ProvisioningError. HTTP status handling is left to the caller.
        """
        logger = self.get_logger()
        session = http or self.http
        start_time = time.time()

        try:
            response = session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(
                "Panel request timed out",
                extra={**log_context, "timeout": self.timeout},
            )
            raise ProvisioningTimeoutError(
                f"{self.provider} request timed out after {self.timeout}s",
                details={**log_context, "error": str(e)},
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                "Connection error to panel",
                extra=log_context,
                exc_info=True,
            )
            raise ProvisioningError(
                f"Could not connect to {self.provider}",
                details={**log_context, "error": str(e)},
            ) from e

        logger.debug(
            "Panel responded",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return response

    def _json(self, response: requests.Response, log_context: dict[str, Any]) -> dict[str, Any]:
        """Decode a 2xx JSON object response or raise ProvisioningError."""
        if not response.ok:
            self.get_logger().error(
                "Panel returned an error status",
                extra={
                    **log_context,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                },
            )
            raise ProvisioningError(
                f"{self.provider} returned HTTP {response.status_code}",
                details={
                    **log_context,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                },
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProvisioningError(
                f"{self.provider} returned invalid JSON",
                details={**log_context, "body": response.text[:500]},
            ) from e

        if not isinstance(data, dict):
            raise ProvisioningError(
                f"{self.provider} returned an unexpected response",
                details={**log_context, "body": response.text[:500]},
            )
        return data

    # =========================================================================
    # Parsing
    # =========================================================================

    @staticmethod
    def parse_expiry(value: Any) -> datetime:
        """
        Parse a panel expiry into an aware datetime.

        Accepts unix timestamps in seconds or milliseconds (numbers or
        numeric strings) and ISO 8601 datetimes or dates. Naive values
        are interpreted in PORTAL_TIMEZONE, which is how the panels display
        them.

        Raises:
            ValueError: value is missing or not a recognizable expiry
        """
        if value is None or value == "" or isinstance(value, bool):
            raise ValueError("expiry is missing")

        if isinstance(value, str):
            text = value.strip()
            try:
                value = float(text)
            except ValueError:
                parsed = parse_datetime(text.replace(" ", "T", 1))
                if parsed is None:
                    raise ValueError(f"unrecognized expiry {text!r}") from None
                if timezone.is_naive(parsed):
                    parsed = parsed.replace(tzinfo=ZoneInfo(settings.PORTAL_TIMEZONE))
                return parsed

        if isinstance(value, (int, float)):
            seconds = float(value)
            if seconds <= 0:
                raise ValueError(f"non-positive expiry timestamp {value!r}")
            if seconds > 1e12:
                seconds /= 1000
            return datetime.fromtimestamp(seconds, tz=dt_timezone.utc)

        raise ValueError(f"unsupported expiry type {type(value).__name__}")

    def expiry_from(self, value: Any, log_context: dict[str, Any]) -> datetime:
        """parse_expiry that raises ProvisioningError instead of ValueError."""
        try:
            return self.parse_expiry(value)
        except ValueError as e:
            raise ProvisioningError(
                f"{self.provider} response has no usable expiry",
                details={**log_context, "expiry": repr(value)[:100]},
            ) from e

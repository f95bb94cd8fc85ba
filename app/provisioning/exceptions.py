"""
Provisioning exceptions raised by reseller panel gateways.

Every gateway failure surfaces as a ProvisioningError. The exception
carries two texts:

    message / details: upstream detail for server-side logs only
    safe_message: text that may be stored on the payment record and shown
        to the subscriber

Gateways that renew with one panel call per month set months_applied to
the months the panel accepted before the failure.

Exception Hierarchy:
    ProvisioningError (ExternalServiceError)
    ├── ProvisioningConfigurationError - Missing or invalid panel linkage
    ├── ProvisioningTimeoutError - Panel did not answer in time
    ├── ProvisioningRateLimitError - Panel throttled the renewal
    └── ProvisioningRejectedError - Panel answered but refused the renewal
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class ProvisioningError(ExternalServiceError):
    """
    Base exception for reseller panel failures.

    Example:
        raise ProvisioningError(
            f"NATV returned HTTP {response.status_code}",
            details={"status_code": response.status_code, "body": response.text[:500]},
        )
    """

    default_error_code: str = "PROVISIONING_ERROR"
    default_safe_message: str = (
        "We could not renew your subscription automatically. Please contact support."
    )

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        safe_message: str | None = None,
        months_applied: int = 0,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self._safe_message = safe_message
        self.months_applied = months_applied

    @property
    def safe_message(self) -> str:
        """Client-facing text; never includes upstream responses."""
        return self._safe_message or self.default_safe_message


class ProvisioningConfigurationError(ProvisioningError):
    """The client or integration is not set up for automatic renewal."""

    default_error_code: str = "PROVISIONING_NOT_CONFIGURED"
    default_safe_message: str = (
        "Your subscription is not linked to a renewal server. Please contact support."
    )


class ProvisioningTimeoutError(ProvisioningError):
    """The panel did not respond within PROVISIONING_TIMEOUT_SECONDS."""

    default_error_code: str = "PROVISIONING_TIMEOUT"
    default_safe_message: str = (
        "The renewal server did not respond. Please contact support."
    )


class ProvisioningRateLimitError(ProvisioningError):
    """The panel throttled renewals for this subscriber."""

    default_error_code: str = "PROVISIONING_RATE_LIMITED"
    default_safe_message: str = (
        "The renewal server is busy. Please contact support."
    )


class ProvisioningRejectedError(ProvisioningError):
    """The panel answered but refused the renewal (credits, unknown user)."""

    default_error_code: str = "PROVISIONING_REJECTED"


__all__ = [
    "ProvisioningConfigurationError",
    "ProvisioningError",
    "ProvisioningRateLimitError",
    "ProvisioningRejectedError",
    "ProvisioningTimeoutError",
]

"""
Base exception classes shared by the domain apps.

Every failure the renewal pipeline raises on purpose carries a
machine-readable error_code and a details dict for structured logs.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── NotFoundError - A row the pipeline depends on is gone
    ├── PermissionDeniedError - Caller could not be authenticated
    └── ExternalServiceError - MercadoPago, reseller panels, WhatsApp

Usage:
    from core.exceptions import ExternalServiceError

    class WhatsAppError(ExternalServiceError):
        default_error_code = "WHATSAPP_SEND_FAILED"

    raise WhatsAppError("Gateway returned HTTP 500", details={"status_code": 500})

Note:
    `details` goes to logs only. Responses are built from fixed texts,
    so upstream bodies never reach subscribers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Description for operators
        error_code: Machine-readable code
        details: Log context (ids, upstream status, response excerpt)

    Example:
        try:
            gateway.renew(integration, username, months)
        except BaseApplicationError as e:
            logger.error("Renewal failed", extra={"error_code": e.error_code, **e.details})
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class NotFoundError(BaseApplicationError):
    """
    Raised when a row disappears between lookup and write.

    Client-facing lookups return a failed ServiceResult instead, so that
    "missing" and "belongs to someone else" stay indistinguishable.
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """Raised when a caller cannot be authenticated (bad signature, bad session)."""

    default_error_code: str = "PERMISSION_DENIED"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a call to a third-party HTTP service fails.

    Covers network errors, timeouts, non-2xx statuses and responses that
    cannot be decoded. Subclasses per service set their own code.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"

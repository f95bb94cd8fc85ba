"""
Service layer base classes.

- ServiceResult: success/failure wrapper for outcomes a caller must branch on
- BaseService: per-class logger and transaction helper

Expected outcomes (unknown payment, invalid checkout input, panel
refused the charge) come back as a failed ServiceResult with an
error_code the view maps to an HTTP status. Bugs and infrastructure
failures stay exceptions.

Usage:
    from core.services import BaseService, ServiceResult

    class CreditSyncService(BaseService):
        @classmethod
        def sync_credits(cls, integration_id) -> ServiceResult[CreditSnapshot]:
            ...
            return ServiceResult.failure("Integration is inactive", error_code="INTEGRATION_INACTIVE")

    # In view
    result = orchestrator.handle_poll(identity, payment_id)
    if not result.success:
        return Response({"ok": False, "error": result.error}, status=404)
    return Response(result.data.to_response())
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    Attributes:
        success: Whether the operation succeeded
        data: Payload when successful
        error: Message safe to show the caller when failed
        error_code: Machine-readable code for the view's status mapping
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Failed result from an exception.

        Application errors keep their own message and code; anything else
        is named after its class.
        """
        message = getattr(exc, "message", None) or str(exc)
        code = error_code or getattr(exc, "error_code", None) or exc.__class__.__name__.upper()
        return cls(success=False, error=message, error_code=code)


class BaseService:
    """
    Base class for services.

    Stateless services expose classmethods. Services that talk to
    repositories or HTTP clients take them in __init__ so tests can pass
    fakes; both styles share these helpers.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """transaction.atomic() with the boundary visible in service code."""
        with transaction.atomic():
            yield

"""
Fulfillment orchestrator: turns an approved payment into a renewal, once.

Two entry points observe the same payment and converge on advance():

    handle_webhook  MercadoPago notification (signature already verified)
    handle_poll     Client portal polling with a session identity

advance() walks one record forward as far as it can:

    1. refresh approval status (StatusOracle)
    2. not approved          -> awaiting_payment / payment_failed
    3. fulfillment done      -> done (stored new_due_date, no panel call)
    4. fulfillment error     -> error (stored safe message, no retry)
    5. fulfillment running   -> renewing
    6. lock lost             -> renewing
    7. lock won              -> renew the months still owed at the panel,
                                then persist
                                done (client update + audit event, atomic)
                                or error (safe message)
    8. side effects          -> credit sync, WhatsApp confirmation

Every collaborator is injected so tests can substitute fakes;
build_default() wires the Django implementations.

Usage:
    orchestrator = FulfillmentOrchestrator.build_default()
    outcome = orchestrator.handle_webhook(tenant.id, "1234567890")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import requests

from core.services import BaseService, ServiceResult
from payments.adapters import MercadoPagoAdapter
from payments.locks import FulfillmentLock
from payments.services.notifier import SideEffectNotifier
from payments.services.status_oracle import StatusOracle
from payments.state_machines import (
    ApprovalStatus,
    FulfillmentPhase,
    FulfillmentStatus,
    period_to_months,
)
from provisioning.exceptions import ProvisioningConfigurationError, ProvisioningError
from provisioning.gateways import get_gateway

if TYPE_CHECKING:
    from clients.models import Client
    from clients.services import PortalIdentity
    from payments.models import PaymentRecord
    from payments.protocols import (
        ClientRepository,
        CredentialsRepository,
        LedgerRepository,
        SideEffectDispatcher,
    )
    from provisioning.gateways import ProvisioningGateway
    from provisioning.models import ProviderIntegration


PAYMENT_NOT_FOUND_MESSAGE = "Payment not found"

LOCAL_UPDATE_FAILED_MESSAGE = (
    "Your subscription was renewed but we could not update your account. "
    "Please contact support."
)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class FulfillmentOutcome:
    """
    What a caller learns about a payment after advance().

    Attributes:
        phase: FulfillmentPhase value
        approval_status: ApprovalStatus value of the record
        new_due_date: Subscription expiry, only for phase done
        error: Client-safe message, only for phase error
    """

    phase: str
    approval_status: str
    new_due_date: datetime | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in (
            FulfillmentPhase.DONE,
            FulfillmentPhase.ERROR,
            FulfillmentPhase.PAYMENT_FAILED,
        )

    def to_response(self) -> dict[str, Any]:
        """Portal response body: {ok, status, phase, new_due_date?, error?}."""
        body: dict[str, Any] = {
            "ok": True,
            "status": str(self.approval_status),
            "phase": str(self.phase),
        }
        if self.new_due_date is not None:
            body["new_due_date"] = self.new_due_date.isoformat()
        if self.error:
            body["error"] = self.error
        return body


# =============================================================================
# Orchestrator
# =============================================================================


class FulfillmentOrchestrator(BaseService):
    """
    Drives PaymentRecord fulfillment for both entry points.

    Safe to run concurrently for the same payment in any number of
    processes: only the FulfillmentLock winner calls the panel.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        credentials: CredentialsRepository,
        clients: ClientRepository,
        http: requests.Session,
        status_oracle: StatusOracle | None = None,
        lock: FulfillmentLock | None = None,
        gateway_factory: Callable[..., ProvisioningGateway] | None = None,
        notifier: SideEffectDispatcher | None = None,
    ):
        self.ledger = ledger
        self.credentials = credentials
        self.clients = clients
        self.http = http
        self.status_oracle = status_oracle or StatusOracle(
            ledger=ledger,
            credentials=credentials,
            adapter=MercadoPagoAdapter(http=http),
        )
        self.lock = lock or FulfillmentLock()
        self.gateway_factory = gateway_factory or get_gateway
        self.notifier = notifier or SideEffectNotifier()

    @classmethod
    def build_default(cls) -> FulfillmentOrchestrator:
        """Orchestrator wired to the ORM repositories and a fresh HTTP session."""
        from clients.repositories import DjangoClientRepository
        from payments.repositories import (
            DjangoCredentialsRepository,
            DjangoLedgerRepository,
        )

        return cls(
            ledger=DjangoLedgerRepository(),
            credentials=DjangoCredentialsRepository(),
            clients=DjangoClientRepository(),
            http=requests.Session(),
        )

    # =========================================================================
    # Entry Points
    # =========================================================================

    def handle_webhook(self, tenant_id, external_payment_id: str) -> FulfillmentOutcome | None:
        """
        Process a verified MercadoPago notification.

        Returns:
            The outcome, or None when the payment is not in the tenant's
            ledger (acknowledged without action)
        """
        record = self.ledger.get(tenant_id, external_payment_id)
        if record is None:
            self.get_logger().info(
                "Webhook for unknown payment ignored",
                extra={"tenant_id": str(tenant_id), "external_payment_id": external_payment_id},
            )
            return None
        return self.advance(record)

    def handle_poll(
        self,
        identity: PortalIdentity,
        external_payment_id: str,
    ) -> ServiceResult[FulfillmentOutcome]:
        """
        Process a client portal poll.

        Unknown payments and payments of another subscriber fail with
        the same PAYMENT_NOT_FOUND result.
        """
        record = self.ledger.get(identity.tenant_id, external_payment_id)
        if record is None or not self._owned_by(record, identity):
            return ServiceResult.failure(PAYMENT_NOT_FOUND_MESSAGE, error_code="PAYMENT_NOT_FOUND")
        return ServiceResult.success(self.advance(record))

    # =========================================================================
    # State Machine
    # =========================================================================

    def advance(self, record: PaymentRecord) -> FulfillmentOutcome:
        """Move one record forward and report where it stands."""
        record, _ = self.status_oracle.refresh_approval_status(record)

        if record.approval_status != ApprovalStatus.APPROVED:
            if record.is_payment_failed:
                return self._outcome(record, FulfillmentPhase.PAYMENT_FAILED)
            return self._outcome(record, FulfillmentPhase.AWAITING_PAYMENT)

        status = record.fulfillment_status
        if status == FulfillmentStatus.DONE:
            return self._outcome(record, FulfillmentPhase.DONE)
        if status == FulfillmentStatus.ERROR:
            return self._outcome(record, FulfillmentPhase.ERROR)
        if status == FulfillmentStatus.PROCESSING:
            return self._outcome(record, FulfillmentPhase.RENEWING)

        if not self.lock.try_acquire(record):
            return self._outcome(record, FulfillmentPhase.RENEWING)

        return self._fulfill(record)

    def _fulfill(self, record: PaymentRecord) -> FulfillmentOutcome:
        """Renew at the panel and persist the result. Caller holds the lock."""
        logger = self.get_logger()
        log_context: dict[str, Any] = {
            "payment_record_id": str(record.pk),
            "external_payment_id": record.external_payment_id,
            "tenant_id": str(record.tenant_id),
        }
        integration_id = None
        months = period_to_months(record.period)
        remaining = record.months_remaining

        try:
            client, integration = self._load_linkage(record)
            integration_id = integration.pk
            log_context.update(provider=integration.provider, months=months, remaining=remaining)
            if remaining < 1:
                raise ProvisioningConfigurationError(
                    "Every month of this payment was already applied at the panel",
                    details={"months_applied": record.months_applied},
                )

            gateway = self.gateway_factory(integration.provider, http=self.http)
            result = gateway.renew(integration, client.server_username, remaining)
        except ProvisioningError as e:
            logger.error(
                "Renewal failed",
                extra={**log_context, "error_code": e.error_code, "error": e.message, **e.details},
            )
            return self._fail(record, e.safe_message, integration_id, e.months_applied)
        except Exception:
            logger.exception("Renewal crashed", extra=log_context)
            return self._fail(record, ProvisioningError.default_safe_message, integration_id)

        record.months_applied = months
        try:
            with self.atomic():
                record.complete(new_due_date=result.new_expiry)
                self.ledger.save_fulfillment(record)
                self.clients.apply_renewal(client, record, result, months)
        except Exception:
            logger.exception(
                "Renewed at provider but the local update failed; reconcile manually",
                extra={**log_context, "new_expiry": result.new_expiry.isoformat()},
            )
            self.ledger.force_error(record, LOCAL_UPDATE_FAILED_MESSAGE)
            self.notifier.after_fulfillment(record, integration_id)
            return self._outcome(record, FulfillmentPhase.ERROR)

        logger.info(
            "Renewal completed",
            extra={**log_context, "new_due_date": result.new_expiry.isoformat()},
        )
        self.notifier.after_fulfillment(record, integration_id)
        return self._outcome(record, FulfillmentPhase.DONE)

    def _fail(
        self,
        record: PaymentRecord,
        safe_message: str,
        integration_id,
        months_applied: int = 0,
    ) -> FulfillmentOutcome:
        record.fail(safe_message, months_applied=months_applied)
        self.ledger.save_fulfillment(record)
        self.notifier.after_fulfillment(record, integration_id)
        return self._outcome(record, FulfillmentPhase.ERROR)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_linkage(self, record: PaymentRecord) -> tuple[Client, ProviderIntegration]:
        """
        Load the client and its panel integration.

        Raises:
            ProvisioningConfigurationError: Missing, inactive or foreign linkage
        """
        details = {"payment_record_id": str(record.pk), "client_id": str(record.client_id)}

        client = self.clients.get_subscription_ref(record.tenant_id, record.client_id)
        if client is None:
            raise ProvisioningConfigurationError("Client not found for payment", details=details)
        if not (client.server_username or "").strip():
            raise ProvisioningConfigurationError("Client has no panel username", details=details)

        integration = self.credentials.get_integration(client.integration_id)
        if integration is None:
            raise ProvisioningConfigurationError("Client has no panel integration", details=details)
        details["integration_id"] = str(integration.pk)
        if integration.tenant_id != record.tenant_id:
            raise ProvisioningConfigurationError(
                "Panel integration belongs to another tenant",
                details=details,
            )
        if not integration.is_active:
            raise ProvisioningConfigurationError("Panel integration is inactive", details=details)

        return client, integration

    @staticmethod
    def _owned_by(record: PaymentRecord, identity: PortalIdentity) -> bool:
        return (record.client.whatsapp_username or "").strip() == identity.whatsapp_username.strip()

    @staticmethod
    def _outcome(record: PaymentRecord, phase: str) -> FulfillmentOutcome:
        if phase == FulfillmentPhase.DONE:
            return FulfillmentOutcome(
                phase=phase,
                approval_status=record.approval_status,
                new_due_date=record.new_due_date,
            )
        if phase == FulfillmentPhase.ERROR:
            return FulfillmentOutcome(
                phase=phase,
                approval_status=record.approval_status,
                error=record.fulfillment_error or ProvisioningError.default_safe_message,
            )
        return FulfillmentOutcome(phase=phase, approval_status=record.approval_status)

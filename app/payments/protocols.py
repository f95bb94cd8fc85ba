"""
Protocol definitions for the fulfillment pipeline's collaborators.

The orchestrator depends on these interfaces rather than on the ORM so
that tests can pass fakes and the storage layer can change without
touching the pipeline. The Django implementations live in
payments.repositories and clients.repositories.

Available Protocols:
    LedgerRepository: PaymentRecord reads and writes
    CredentialsRepository: Read-only payment and panel credentials
    ClientRepository: Client reads and the post-renewal update
    SideEffectDispatcher: Fire-and-forget work after a fulfillment

Note:
    - Protocols are primarily for type checking
    - @runtime_checkable allows isinstance() checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any

    from clients.models import Client, ClientEvent
    from payments.models import PaymentGateway, PaymentRecord
    from provisioning.gateways import RenewalResult
    from provisioning.models import ProviderIntegration


@runtime_checkable
class LedgerRepository(Protocol):
    """
    Protocol for the payment ledger.

    Every write that races with another entry point is a conditional
    update; plain saves are only used while holding the fulfillment lock.
    """

    def get(self, tenant_id: Any, external_payment_id: str) -> PaymentRecord | None:
        """Record for a tenant's external payment id, or None."""
        ...

    def set_approval_status(self, record: PaymentRecord, status: str) -> bool:
        """
        Persist a new approval status unless the row is already approved.

        Returns True when the row changed; mirrors the change onto record.
        """
        ...

    def save_fulfillment(self, record: PaymentRecord) -> None:
        """Persist the fulfillment columns after an FSM transition."""
        ...

    def force_error(self, record: PaymentRecord, safe_message: str) -> bool:
        """Conditionally move a PROCESSING row to ERROR (outside the FSM)."""
        ...


@runtime_checkable
class CredentialsRepository(Protocol):
    """Protocol for read-only credential lookups."""

    def get_active_gateways(self, tenant_id: Any) -> list[PaymentGateway]:
        ...

    def get_active_gateway(self, tenant_id: Any) -> PaymentGateway | None:
        ...

    def get_gateway(self, tenant_id: Any, gateway_id: Any) -> PaymentGateway | None:
        ...

    def get_integration(self, integration_id: Any) -> ProviderIntegration | None:
        ...


@runtime_checkable
class ClientRepository(Protocol):
    """Protocol for client reads and the post-renewal update."""

    def get_subscription_ref(self, tenant_id: Any, client_id: Any) -> Client | None:
        ...

    def apply_renewal(
        self,
        client: Client,
        record: PaymentRecord,
        result: RenewalResult,
        months: int,
    ) -> Client:
        ...

    def record_event(
        self,
        tenant_id: Any,
        client_id: Any,
        event_type: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> ClientEvent:
        ...


@runtime_checkable
class SideEffectDispatcher(Protocol):
    """Protocol for post-fulfillment side effects. Must never raise."""

    def after_fulfillment(
        self,
        record: PaymentRecord,
        integration_id: Any = None,
    ) -> None:
        ...

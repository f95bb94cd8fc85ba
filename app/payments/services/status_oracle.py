"""
Status oracle: refreshes a payment's approval status from MercadoPago.

Webhooks only say "something changed for payment X"; the payload is not
trusted. Both entry points ask MercadoPago for the authoritative status
through this oracle before deciding anything.

Rules:
    - approved is sticky: an approved record is never looked up again
      and never overwritten
    - a provider failure means "no change"; it is logged, never raised
    - unknown MercadoPago statuses are ignored
    - lookups use the gateway that issued the charge, falling back to
      the tenant's preferred gateway

Usage:
    oracle = StatusOracle(ledger=ledger, credentials=credentials, adapter=adapter)
    record, changed = oracle.refresh_approval_status(record)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService
from payments.exceptions import MercadoPagoError
from payments.state_machines import MERCADOPAGO_STATUS_MAP, ApprovalStatus

if TYPE_CHECKING:
    from payments.adapters import MercadoPagoAdapter
    from payments.models import PaymentGateway, PaymentRecord
    from payments.protocols import CredentialsRepository, LedgerRepository


def normalize_status(raw_status: str | None) -> str | None:
    """Map a MercadoPago status to an ApprovalStatus value, or None if unknown."""
    return MERCADOPAGO_STATUS_MAP.get((raw_status or "").strip().lower())


class StatusOracle(BaseService):
    """Refreshes PaymentRecord.approval_status from the payment provider."""

    def __init__(
        self,
        ledger: LedgerRepository,
        credentials: CredentialsRepository,
        adapter: MercadoPagoAdapter,
    ):
        self.ledger = ledger
        self.credentials = credentials
        self.adapter = adapter

    def refresh_approval_status(self, record: PaymentRecord) -> tuple[PaymentRecord, bool]:
        """
        Bring record.approval_status up to date.

        Returns:
            (record, changed) where changed is True when a new status
            was persisted
        """
        logger = self.get_logger()
        log_context = {
            "payment_record_id": str(record.pk),
            "external_payment_id": record.external_payment_id,
        }

        if record.approval_status == ApprovalStatus.APPROVED:
            return record, False

        gateway = self._gateway_for(record)
        if gateway is None:
            logger.warning("No active payment gateway for tenant", extra=log_context)
            return record, False

        try:
            raw_status = self.adapter.get_payment_status(
                gateway.access_token,
                record.external_payment_id,
            )
        except MercadoPagoError as e:
            logger.warning(
                "Payment status lookup failed; keeping stored status",
                extra={**log_context, "error_code": e.error_code, "retryable": e.is_retryable},
            )
            return record, False

        status = normalize_status(raw_status)
        if status is None:
            logger.warning(
                "Unknown MercadoPago status ignored",
                extra={**log_context, "raw_status": raw_status},
            )
            return record, False

        if status == record.approval_status:
            return record, False

        changed = self.ledger.set_approval_status(record, status)
        if changed:
            logger.info(
                "Approval status updated",
                extra={**log_context, "approval_status": status},
            )
        return record, changed

    def _gateway_for(self, record: PaymentRecord) -> PaymentGateway | None:
        """
        Gateway whose account issued the charge.

        MercadoPago only resolves a payment id under the account that
        created it, so the record's own gateway wins while it is active.
        Records without one use the tenant's preferred gateway.
        """
        gateway = self.credentials.get_gateway(record.tenant_id, record.gateway_id)
        if gateway is not None and gateway.is_active and gateway.access_token:
            return gateway
        return self.credentials.get_active_gateway(record.tenant_id)

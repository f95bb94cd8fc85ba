"""
Provisioning services.

CreditSyncService reads a reseller account's credit balance from its
panel and stores it on the ProviderIntegration. It runs after every
renewal attempt (see provisioning.tasks) so the dashboard shows how many
renewals the reseller can still afford.

Usage:
    from provisioning.services import CreditSyncService

    result = CreditSyncService.sync_credits(integration_id)
    if result.success:
        snapshot = result.data
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone

from core.services import BaseService, ServiceResult
from provisioning.exceptions import ProvisioningError
from provisioning.gateways import CreditSnapshot, get_gateway
from provisioning.models import ProviderIntegration

if TYPE_CHECKING:
    import requests


class CreditSyncService(BaseService):
    """Refreshes the credit columns of a ProviderIntegration."""

    @classmethod
    def sync_credits(
        cls,
        integration_id,
        http: requests.Session | None = None,
    ) -> ServiceResult[CreditSnapshot]:
        """
        Fetch the current credit balance and persist it.

        Only the credit columns are written; owner_username is updated
        when the panel reports one. A panel failure leaves the stored
        values untouched.

        Args:
            integration_id: ProviderIntegration primary key
            http: Optional requests session for the gateway

        Returns:
            ServiceResult with the CreditSnapshot, or a failure
        """
        logger = cls.get_logger()

        try:
            integration = ProviderIntegration.objects.get(pk=integration_id)
        except ProviderIntegration.DoesNotExist:
            return ServiceResult.failure(
                "Integration not found",
                error_code="INTEGRATION_NOT_FOUND",
            )

        if not integration.is_active:
            return ServiceResult.failure(
                "Integration is inactive",
                error_code="INTEGRATION_INACTIVE",
            )

        try:
            gateway = get_gateway(integration.provider, http=http)
            snapshot = gateway.fetch_credits(integration)
        except ProvisioningError as e:
            logger.warning(
                "Credit sync failed",
                extra={
                    "integration_id": str(integration.pk),
                    "provider": integration.provider,
                    "error_code": e.error_code,
                    **e.details,
                },
            )
            return ServiceResult.from_exception(e)

        update_fields = {"credits_last_sync_at": timezone.now()}
        if snapshot.credits is not None:
            update_fields["credits_last_known"] = snapshot.credits
        if snapshot.owner_username:
            update_fields["owner_username"] = snapshot.owner_username

        # Targeted update so a concurrent admin edit of credentials is kept.
        ProviderIntegration.objects.filter(pk=integration.pk).update(
            updated_at=timezone.now(),
            **update_fields,
        )

        logger.info(
            "Credits synced",
            extra={
                "integration_id": str(integration.pk),
                "provider": integration.provider,
                "credits": snapshot.credits,
            },
        )
        return ServiceResult.success(snapshot)

"""
Celery tasks for provisioning side effects.

Usage:
    from provisioning.tasks import sync_integration_credits

    sync_integration_credits.delay(str(integration_id))
"""

from __future__ import annotations

import logging

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CREDIT_SYNC_SOFT_TIME_LIMIT = 60


# =============================================================================
# Credit Sync
# =============================================================================


@shared_task(soft_time_limit=CREDIT_SYNC_SOFT_TIME_LIMIT, ignore_result=True)
def sync_integration_credits(integration_id: str) -> dict:
    """
    Refresh a reseller's credit balance after a renewal attempt.

    Never retried; failures are logged and swallowed because the next
    renewal triggers another sync.

    Args:
        integration_id: ProviderIntegration UUID (string)

    Returns:
        Dict with sync status
    """
    from provisioning.services import CreditSyncService

    try:
        result = CreditSyncService.sync_credits(integration_id)
    except SoftTimeLimitExceeded:
        logger.warning(
            "Credit sync exceeded its time limit",
            extra={"integration_id": str(integration_id)},
        )
        return {"status": "timeout", "integration_id": str(integration_id)}
    except Exception:
        logger.exception(
            "Credit sync crashed",
            extra={"integration_id": str(integration_id)},
        )
        return {"status": "error", "integration_id": str(integration_id)}

    if not result.success:
        return {
            "status": "failed",
            "integration_id": str(integration_id),
            "error_code": result.error_code,
        }
    return {
        "status": "synced",
        "integration_id": str(integration_id),
        "credits": result.data.credits,
    }

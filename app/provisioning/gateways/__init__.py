"""
Provisioning gateway implementations.

This package contains one gateway per reseller panel:
- base.py: ProvisioningGateway protocol, result types, shared HTTP handling
- token.py: NATV and FAST (token-based, variant A)
- session.py: ELITE (session-based, variant B)

Gateway Selection:
    Gateways are selected by ProviderIntegration.provider.
    Use get_gateway() factory function.

Usage:
    from provisioning.gateways import get_gateway

    gateway = get_gateway(integration.provider, http=session)
    result = gateway.renew(integration, client.server_username, months=3)

Adding New Panels:
    1. Create a gateway class implementing ProvisioningGateway
    2. Add the panel to provisioning.models.ProviderKind
    3. Register it in GATEWAYS below
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from provisioning.exceptions import ProvisioningConfigurationError
from provisioning.gateways.base import (
    BaseGateway,
    CreditSnapshot,
    ProvisioningGateway,
    RenewalResult,
)
from provisioning.gateways.session import EliteGateway
from provisioning.gateways.token import FastGateway, NatvGateway
from provisioning.models import ProviderKind

if TYPE_CHECKING:
    import requests

logger = logging.getLogger(__name__)

# Gateway registry
# Maps ProviderKind value to gateway class
GATEWAYS: dict[str, type[BaseGateway]] = {
    ProviderKind.NATV: NatvGateway,
    ProviderKind.FAST: FastGateway,
    ProviderKind.ELITE: EliteGateway,
}


def get_gateway(
    provider: str,
    http: requests.Session | None = None,
    **kwargs,
) -> ProvisioningGateway:
    """
    Get gateway instance by provider.

    Args:
        provider: ProviderKind value
        http: Shared requests session for token-based gateways
        **kwargs: Gateway configuration options (timeout, session_factory)

    Returns:
        Configured gateway instance

    Raises:
        ProvisioningConfigurationError: If the provider has no gateway
    """
    gateway_class = GATEWAYS.get((provider or "").upper())
    if gateway_class is None:
        logger.error("No provisioning gateway for provider", extra={"provider": provider})
        raise ProvisioningConfigurationError(
            f"Unknown provider: {provider}",
            details={"provider": provider},
        )
    return gateway_class(http=http, **kwargs)


def list_providers() -> list[str]:
    """Get list of providers with a gateway."""
    return list(GATEWAYS.keys())


__all__ = [
    "GATEWAYS",
    "BaseGateway",
    "CreditSnapshot",
    "EliteGateway",
    "FastGateway",
    "NatvGateway",
    "ProvisioningGateway",
    "RenewalResult",
    "get_gateway",
    "list_providers",
]

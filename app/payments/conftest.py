"""
Pytest fixtures for payment tests.

Fixtures build one tenant with a linked subscriber, an active gateway
and a portal session, plus an orchestrator wired to the ORM repositories
with the network edges (MercadoPago, reseller panel, side effects)
replaced by mocks.

Usage:
    def test_renews_once(orchestrator, approved_record, panel):
        orchestrator.advance(approved_record)
        panel.renew.assert_called_once()
"""

from datetime import datetime, timezone as dt_timezone
from unittest.mock import MagicMock

import pytest

from clients.repositories import DjangoClientRepository
from clients.services import PortalIdentity
from clients.tests.factories import (
    ClientFactory,
    ClientPortalSessionFactory,
    TenantFactory,
)
from payments.repositories import DjangoCredentialsRepository, DjangoLedgerRepository
from payments.services import FulfillmentOrchestrator, StatusOracle
from payments.state_machines import ApprovalStatus
from payments.tests.factories import PaymentGatewayFactory, PaymentRecordFactory
from provisioning.gateways import RenewalResult
from provisioning.tests.factories import ProviderIntegrationFactory

NEW_EXPIRY = datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)


# =============================================================================
# Tenant and Client Fixtures
# =============================================================================


@pytest.fixture
def tenant(db):
    """Create an active tenant."""
    return TenantFactory(slug="acme-tv")


@pytest.fixture
def integration(tenant):
    """Create an active NATV integration for the tenant."""
    return ProviderIntegrationFactory(tenant=tenant)


@pytest.fixture
def subscriber(tenant, integration):
    """Create a client linked to the tenant's integration."""
    return ClientFactory(
        tenant=tenant,
        integration=integration,
        whatsapp_username="5511999990000",
        server_username="joao123",
    )


@pytest.fixture
def gateway(tenant):
    """Create the tenant's active MercadoPago gateway."""
    return PaymentGatewayFactory(tenant=tenant, access_token="APP_USR-acme")


@pytest.fixture
def portal_session(subscriber):
    """Create a portal session for the subscriber."""
    return ClientPortalSessionFactory(
        tenant=subscriber.tenant,
        whatsapp_username=subscriber.whatsapp_username,
    )


@pytest.fixture
def identity(subscriber):
    """Portal identity of the subscriber."""
    return PortalIdentity(
        tenant_id=subscriber.tenant_id,
        whatsapp_username=subscriber.whatsapp_username,
    )


# =============================================================================
# PaymentRecord Fixtures
# =============================================================================


@pytest.fixture
def pending_record(tenant, subscriber, gateway):
    """Create a payment the provider has not approved yet."""
    return PaymentRecordFactory(
        tenant=tenant,
        client=subscriber,
        gateway=gateway,
        external_payment_id="1234567890",
    )


@pytest.fixture
def approved_record(tenant, subscriber, gateway):
    """Create an approved payment that has not been fulfilled."""
    return PaymentRecordFactory(
        tenant=tenant,
        client=subscriber,
        gateway=gateway,
        external_payment_id="1234567890",
        approval_status=ApprovalStatus.APPROVED,
    )


# =============================================================================
# Orchestrator Fixtures
# =============================================================================


@pytest.fixture
def adapter():
    """MercadoPago adapter mock reporting every payment as approved."""
    mock = MagicMock()
    mock.get_payment_status.return_value = "approved"
    return mock


@pytest.fixture
def panel():
    """Provisioning gateway mock with a successful renewal."""
    mock = MagicMock()
    mock.renew.return_value = RenewalResult(new_expiry=NEW_EXPIRY)
    return mock


@pytest.fixture
def gateway_factory(panel):
    """Factory returning the panel mock for any provider."""
    return MagicMock(return_value=panel)


@pytest.fixture
def notifier():
    """Side effect dispatcher mock."""
    return MagicMock()


@pytest.fixture
def orchestrator(adapter, gateway_factory, notifier):
    """Orchestrator on the ORM repositories with mocked network edges."""
    ledger = DjangoLedgerRepository()
    credentials = DjangoCredentialsRepository()
    return FulfillmentOrchestrator(
        ledger=ledger,
        credentials=credentials,
        clients=DjangoClientRepository(),
        http=MagicMock(),
        status_oracle=StatusOracle(ledger=ledger, credentials=credentials, adapter=adapter),
        gateway_factory=gateway_factory,
        notifier=notifier,
    )

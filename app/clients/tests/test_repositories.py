"""
Tests for DjangoClientRepository.

Tests cover:
- Tenant-scoped client lookup
- Applying a renewal to the client row
- The RENEWAL audit event
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from clients.models import ClientEvent, EventType
from clients.repositories import DjangoClientRepository
from clients.tests.factories import ClientFactory, TenantFactory
from core.exceptions import NotFoundError
from payments.tests.factories import PaymentRecordFactory
from provisioning.gateways import RenewalResult

NEW_EXPIRY = datetime(2026, 12, 1, 15, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def repository():
    return DjangoClientRepository()


@pytest.fixture
def subscriber(db):
    return ClientFactory(plan_label="Monthly", price_amount=Decimal("30.00"), price_currency="BRL")


@pytest.fixture
def record(subscriber):
    return PaymentRecordFactory(
        tenant=subscriber.tenant,
        client=subscriber,
        period="QUARTERLY",
        plan_label="Quarterly",
        price_amount=Decimal("90.00"),
        price_currency="BRL",
    )


@pytest.mark.django_db
class TestGetSubscriptionRef:
    """Tests for get_subscription_ref."""

    def test_same_tenant(self, repository, subscriber):
        client = repository.get_subscription_ref(subscriber.tenant_id, subscriber.pk)

        assert client == subscriber
        assert client.integration == subscriber.integration

    def test_other_tenant(self, repository, subscriber):
        other = TenantFactory()

        assert repository.get_subscription_ref(other.pk, subscriber.pk) is None


@pytest.mark.django_db
class TestApplyRenewal:
    """Tests for apply_renewal."""

    def test_updates_client(self, repository, subscriber, record):
        repository.apply_renewal(subscriber, record, RenewalResult(new_expiry=NEW_EXPIRY), 3)

        subscriber.refresh_from_db()
        assert subscriber.due_date == NEW_EXPIRY
        assert subscriber.plan_label == "Quarterly"
        assert subscriber.price_amount == Decimal("90.00")
        assert subscriber.server_password == "old-password"

    def test_rotated_password(self, repository, subscriber, record):
        repository.apply_renewal(
            subscriber,
            record,
            RenewalResult(new_expiry=NEW_EXPIRY, rotated_password="n3w-pass"),
            3,
        )

        subscriber.refresh_from_db()
        assert subscriber.server_password == "n3w-pass"

    def test_falls_back_to_client_terms(self, repository, subscriber, record, settings):
        settings.DEFAULT_PRICE_CURRENCY = "BRL"
        record.plan_label = ""
        record.price_currency = ""
        subscriber.price_currency = ""

        repository.apply_renewal(subscriber, record, RenewalResult(new_expiry=NEW_EXPIRY), 3)

        subscriber.refresh_from_db()
        assert subscriber.plan_label == "Monthly"
        assert subscriber.price_currency == "BRL"

    def test_records_event(self, repository, subscriber, record):
        repository.apply_renewal(subscriber, record, RenewalResult(new_expiry=NEW_EXPIRY), 3)

        event = ClientEvent.objects.get(client=subscriber)
        assert event.event_type == EventType.RENEWAL
        assert event.tenant_id == subscriber.tenant_id
        assert event.metadata["external_payment_id"] == record.external_payment_id
        assert event.metadata["months"] == 3
        assert event.metadata["new_due_date"] == NEW_EXPIRY.isoformat()
        assert event.metadata["password_rotated"] is False

    def test_missing_client(self, repository, subscriber, record):
        other_tenant_record = PaymentRecordFactory()

        with pytest.raises(NotFoundError):
            repository.apply_renewal(subscriber, other_tenant_record, RenewalResult(new_expiry=NEW_EXPIRY), 1)

        assert not ClientEvent.objects.filter(client=subscriber).exists()

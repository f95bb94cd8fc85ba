"""
Factory Boy factories for tenant and client test data.

Usage:
    from clients.tests.factories import ClientFactory, ClientPortalSessionFactory

    subscriber = ClientFactory(server_username="joao")
    session = ClientPortalSessionFactory(
        tenant=subscriber.tenant,
        whatsapp_username=subscriber.whatsapp_username,
    )
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from clients.models import Client, ClientPortalSession, Tenant


class TenantFactory(factory.django.DjangoModelFactory):
    """Factory for creating active Tenant instances."""

    class Meta:
        model = Tenant
        skip_postgeneration_save = True

    name = factory.Sequence(lambda n: f"Reseller {n}")
    slug = factory.Sequence(lambda n: f"reseller-{n}")
    is_active = True


class ClientFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Client instances.

    Default creates a subscriber linked to an active NATV integration of
    the same tenant, on a monthly plan due in five days.
    """

    class Meta:
        model = Client
        skip_postgeneration_save = True

    tenant = factory.SubFactory(TenantFactory)
    integration = factory.SubFactory(
        "provisioning.tests.factories.ProviderIntegrationFactory",
        tenant=factory.SelfAttribute("..tenant"),
    )
    display_name = "Maria Silva"
    whatsapp_username = factory.Sequence(lambda n: f"55119{n:08d}")
    server_username = factory.Sequence(lambda n: f"user{n}")
    server_password = "old-password"
    plan_label = "Monthly"
    price_amount = Decimal("35.00")
    price_currency = "BRL"
    due_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=5))


class ClientPortalSessionFactory(factory.django.DjangoModelFactory):
    """Factory for creating unexpired portal sessions."""

    class Meta:
        model = ClientPortalSession
        skip_postgeneration_save = True

    tenant = factory.SubFactory(TenantFactory)
    whatsapp_username = factory.Sequence(lambda n: f"55119{n:08d}")
    session_token = factory.LazyFunction(lambda: f"sess_{uuid.uuid4().hex}")
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(hours=1))

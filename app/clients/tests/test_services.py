"""
Tests for PortalSessionService.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from clients.services import PortalIdentity, PortalSessionService
from clients.tests.factories import ClientPortalSessionFactory


@pytest.mark.django_db
class TestResolve:
    """Tests for PortalSessionService.resolve."""

    def test_valid_session(self):
        session = ClientPortalSessionFactory(whatsapp_username="5511999990000")

        identity = PortalSessionService.resolve(f"  {session.session_token} ")

        assert identity == PortalIdentity(
            tenant_id=session.tenant_id,
            whatsapp_username="5511999990000",
        )

    @pytest.mark.parametrize("token", [None, "", "   "])
    def test_blank_token(self, token):
        assert PortalSessionService.resolve(token) is None

    def test_unknown_token(self):
        ClientPortalSessionFactory()

        assert PortalSessionService.resolve("sess_unknown") is None

    def test_expired_session(self):
        session = ClientPortalSessionFactory(expires_at=timezone.now() - timedelta(minutes=1))

        assert PortalSessionService.resolve(session.session_token) is None
        assert session.is_expired

    def test_inactive_tenant(self):
        session = ClientPortalSessionFactory(tenant__is_active=False)

        assert PortalSessionService.resolve(session.session_token) is None

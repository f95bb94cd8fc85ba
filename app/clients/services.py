"""
Client portal services.

PortalSessionService turns a portal session token into the identity the
payment pipeline authorizes against. The portal login itself (PIN over
WhatsApp) issues ClientPortalSession rows and is handled elsewhere.

Usage:
    from clients.services import PortalSessionService

    identity = PortalSessionService.resolve(token)
    if identity is None:
        return Response({"detail": "Invalid session"}, status=401)
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from django.utils import timezone

from clients.models import ClientPortalSession
from core.services import BaseService


@dataclass(frozen=True)
class PortalIdentity:
    """
    Authenticated portal subscriber.

    Attributes:
        tenant_id: Tenant the session was issued under
        whatsapp_username: WhatsApp number the subscriber logged in with
    """

    tenant_id: UUID
    whatsapp_username: str


class PortalSessionService(BaseService):
    """Resolves client portal session tokens."""

    @classmethod
    def resolve(cls, token: str | None) -> PortalIdentity | None:
        """
        Resolve a session token.

        Returns None for blank, unknown and expired tokens and for
        sessions of inactive tenants. Callers must not distinguish these
        cases in their responses.
        """
        token = (token or "").strip()
        if not token:
            return None

        session = (
            ClientPortalSession.objects.select_related("tenant")
            .filter(
                session_token=token,
                expires_at__gt=timezone.now(),
                tenant__is_active=True,
            )
            .first()
        )
        if session is None:
            cls.get_logger().info("Portal session rejected")
            return None

        return PortalIdentity(
            tenant_id=session.tenant_id,
            whatsapp_username=session.whatsapp_username,
        )

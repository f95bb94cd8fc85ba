"""
Outbound WhatsApp messaging.

A thin client for the WhatsApp gateway the resellers run. Only plain
text messages are needed here (renewal confirmations); the message queue
and template rendering live outside this service.

Configuration (via settings):
- WHATSAPP_API_URL: Send endpoint; empty disables sending
- WHATSAPP_API_TOKEN: Bearer token for the gateway
- WHATSAPP_API_TIMEOUT_SECONDS: Per-call timeout

Usage:
    from clients.messaging import WhatsAppClient

    WhatsAppClient().send_text(client.whatsapp_username, "Payment confirmed!")
"""

from __future__ import annotations

import logging
import re

import requests
from django.conf import settings

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class WhatsAppError(ExternalServiceError):
    """The WhatsApp gateway did not accept a message."""

    default_error_code: str = "WHATSAPP_SEND_FAILED"


class WhatsAppClient:
    """
    Sends text messages through the WhatsApp gateway.

    The HTTP session is injected so tests can pass a mock.
    """

    def __init__(
        self,
        http: requests.Session | None = None,
        api_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ):
        self.http = http or requests.Session()
        self.api_url = api_url if api_url is not None else settings.WHATSAPP_API_URL
        self.token = token if token is not None else settings.WHATSAPP_API_TOKEN
        self.timeout = timeout or settings.WHATSAPP_API_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url)

    @staticmethod
    def normalize_number(username: str) -> str:
        """Digits only; WhatsApp usernames are stored as typed by resellers."""
        return re.sub(r"\D", "", username or "")

    def send_text(self, to: str, message: str) -> bool:
        """
        Send a text message.

        Returns:
            True when sent, False when sending is disabled or the number
            is empty

        Raises:
            WhatsAppError: Network failure or non-2xx response
        """
        number = self.normalize_number(to)
        if not self.is_configured or not number:
            logger.info(
                "WhatsApp message skipped",
                extra={"configured": self.is_configured, "has_number": bool(number)},
            )
            return False

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.http.post(
                self.api_url,
                json={"number": number, "text": message},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise WhatsAppError(
                "Could not reach the WhatsApp gateway",
                details={"error": str(e)},
            ) from e

        if not response.ok:
            raise WhatsAppError(
                f"WhatsApp gateway returned HTTP {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:200]},
            )

        logger.info("WhatsApp message sent", extra={"status_code": response.status_code})
        return True

"""
Clients app configuration.

This app owns the reseller-side view of a subscriber:
- Tenants (reseller organizations) and their clients
- Client portal sessions used to authorize portal requests
- The append-only client event log
- Outbound WhatsApp messaging
"""

from django.apps import AppConfig


class ClientsConfig(AppConfig):
    """Configuration for the clients application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "clients"
    verbose_name = "Clients"

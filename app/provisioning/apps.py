"""
Provisioning app configuration.
"""

from django.apps import AppConfig


class ProvisioningConfig(AppConfig):
    """Configuration for the provisioning application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "provisioning"
    verbose_name = "Provisioning"

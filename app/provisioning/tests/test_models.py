"""
Tests for ProviderIntegration.
"""

import pytest

from provisioning.models import ProviderIntegration, ProviderKind, ProviderVariant


class TestProviderIntegration:
    """Tests for ProviderIntegration helpers."""

    @pytest.mark.parametrize(
        "provider,variant",
        [
            (ProviderKind.NATV, ProviderVariant.TOKEN),
            (ProviderKind.FAST, ProviderVariant.TOKEN),
            (ProviderKind.ELITE, ProviderVariant.SESSION),
        ],
    )
    def test_variant(self, provider, variant):
        assert ProviderIntegration(provider=provider).variant == variant

    def test_str_uses_name(self):
        integration = ProviderIntegration(provider=ProviderKind.FAST, name="Server 1")

        assert str(integration) == "FAST (Server 1)"
